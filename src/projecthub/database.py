"""Database setup for users, templates and projects."""

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    create_engine,
    event,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import Settings

Base = declarative_base()

PROJECT_STATUSES = ("in-progress", "completed", "pending")
INITIAL_PROJECT_STATUS = "in-progress"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Template(Base):
    """System-owned project template, read-only through the API."""

    __tablename__ = "templates"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    description = Column(String)
    category = Column(String)
    image_url = Column(String)
    position = Column(Integer, default=0, nullable=False)


class Project(Base):
    """A user's project created from a template."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in PROJECT_STATUSES) + ")",
            name="ck_projects_status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(String, ForeignKey("templates.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    status = Column(String, default=INITIAL_PROJECT_STATUS, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


DEFAULT_TEMPLATES: List[Dict[str, object]] = [
    {
        "id": "t1",
        "title": "Modern Minimal",
        "featured": True,
        "description": "A clean template with modern minimalist style.",
        "image_url": "https://picsum.photos/seed/1/500/300",
    },
    {
        "id": "t2",
        "title": "Creative Studio",
        "featured": True,
        "description": "A vibrant template for creative projects.",
        "image_url": "https://picsum.photos/seed/2/500/300",
    },
    {
        "id": "t3",
        "title": "Dynamic Grid",
        "featured": True,
        "description": "A template focused on fluid grid layouts.",
        "image_url": "https://picsum.photos/seed/3/500/300",
    },
    {
        "id": "t4",
        "title": "Sleek Portfolio",
        "featured": True,
        "description": "Showcase your work with this sleek design.",
        "image_url": "https://picsum.photos/seed/4/500/300",
    },
    {
        "id": "t5",
        "title": "Bold & Brassy",
        "featured": True,
        "description": "Make an impact with a bold visual statement.",
        "image_url": "https://picsum.photos/seed/5/500/300",
    },
    {
        "id": "t6",
        "title": "Business Landing Page",
        "featured": False,
        "category": "Business",
        "image_url": "https://picsum.photos/500/300",
    },
    {
        "id": "t7",
        "title": "Portfolio Showcase",
        "featured": False,
        "category": "Portfolio",
        "image_url": "https://picsum.photos/500/300?random=1",
    },
    {
        "id": "t8",
        "title": "E-commerce Store",
        "featured": False,
        "category": "E-commerce",
        "image_url": "https://picsum.photos/500/300?random=2",
    },
    {
        "id": "t9",
        "title": "Tech Blog",
        "featured": False,
        "category": "Blog",
        "image_url": "https://picsum.photos/500/300?random=3",
    },
    {
        "id": "t10",
        "title": "Creative Agency",
        "featured": False,
        "category": "Creative",
        "image_url": "https://picsum.photos/500/300?random=4",
    },
]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings) -> Engine:
    """Build an engine for ``settings.database_url``.

    SQLite connections get foreign-key enforcement and a busy timeout so a
    locked database fails the request instead of hanging it.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            future=True,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.db_timeout_seconds,
            },
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, future=True, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(engine: Engine) -> None:
    """Create database tables if they do not exist."""
    from .models import user  # noqa: F401  registers the users table

    Base.metadata.create_all(bind=engine)


def seed_templates(session: Session, templates: Iterable[Dict[str, object]] = DEFAULT_TEMPLATES) -> int:
    """Insert the template catalog when the table is empty.

    Returns the number of templates inserted.
    """
    if session.execute(select(Template.id).limit(1)).first() is not None:
        return 0
    rows = [
        Template(position=position, **data)
        for position, data in enumerate(templates)
    ]
    session.add_all(rows)
    session.commit()
    return len(rows)
