"""Service layer for credentials, templates and projects."""

import logging
from typing import Dict, List

from prometheus_client import Counter
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .database import INITIAL_PROJECT_STATUS, Project, Template
from .errors import ConflictError, NotFoundError, ValidationError
from .models.user import User
from .security import PasswordHasher


logger = logging.getLogger(__name__)

USER_REGISTRATION_COUNTER = Counter(
    "users_registered_total", "Total users registered"
)
LOGIN_COUNTER = Counter(
    "login_attempts_total", "Total login attempts", ["outcome"]
)
PROJECT_COUNTER = Counter(
    "projects_created_total", "Total projects created"
)


def mask_email(email: str) -> str:
    """Keep only the first character of the local part, e.g. ``a***@example.com``."""
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


class CredentialStore:
    """Persist user identities and check their credentials."""

    def __init__(self, session: Session, hasher: PasswordHasher) -> None:
        self.session = session
        self.hasher = hasher

    def register(self, username: str, email: str, password: str) -> Dict[str, object]:
        """Create a user and return its public projection.

        Email uniqueness is left to the unique index so that concurrent
        registrations cannot both succeed.
        """
        user = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.info(
                "registration rejected, email already in use email=%s", mask_email(email)
            )
            raise ConflictError() from exc
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(user)
        USER_REGISTRATION_COUNTER.inc()
        logger.info("registered user id=%s", user.id)
        return {"id": user.id, "username": user.username, "email": user.email}

    def find_by_email(self, email: str) -> User | None:
        return self.session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if user is None:
            self.hasher.dummy_verify(password)
            verified = False
        else:
            verified = self.hasher.verify(password, user.password_hash)
        if not verified:
            LOGIN_COUNTER.labels(outcome="failure").inc()
            logger.info("login failed email=%s", mask_email(email))
            raise ValidationError("Invalid credentials")
        LOGIN_COUNTER.labels(outcome="success").inc()
        logger.info("login succeeded user id=%s", user.id)
        return user


class ResourceRepository:
    """Query templates and manage projects owned by users."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_templates(self, featured: bool) -> List[Template]:
        try:
            return list(
                self.session.execute(
                    select(Template)
                    .where(Template.featured == featured)
                    .order_by(Template.position, Template.id)
                ).scalars()
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("template query failed featured=%s", featured)
            raise ValidationError("Bad request") from exc

    def create_project(self, template_id: str, owner_id: int, title: str) -> Project:
        if self.session.get(Template, template_id) is None:
            raise NotFoundError(f"Template {template_id} not found")
        if self.session.get(User, owner_id) is None:
            raise NotFoundError("Owner not found")

        project = Project(
            template_id=template_id,
            user_id=owner_id,
            title=title,
            status=INITIAL_PROJECT_STATUS,
        )
        self.session.add(project)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning(
                "project rejected by constraints template=%s owner=%s", template_id, owner_id
            )
            raise NotFoundError("Invalid data") from exc
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(project)
        PROJECT_COUNTER.inc()
        logger.info(
            "created project id=%s template=%s owner=%s", project.id, template_id, owner_id
        )
        return project

    def list_projects(self, owner_id: int) -> List[Project]:
        return list(
            self.session.execute(
                select(Project)
                .where(Project.user_id == owner_id)
                .order_by(Project.id)
            ).scalars()
        )
