from typing import Generator

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from .errors import UnauthenticatedError
from .security import PasswordHasher, TokenService
from .services import CredentialStore, ResourceRepository


def get_db(request: Request) -> Generator[Session, None, None]:
    """Provide a session bound to the application's engine for one request."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_credential_store(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> CredentialStore:
    return CredentialStore(db, hasher)


def get_resource_repository(db: Session = Depends(get_db)) -> ResourceRepository:
    return ResourceRepository(db)


def get_current_user_id(
    authorization: str | None = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """Resolve the acting user from the bearer token.

    A missing header or token part is 401. Any token that is present, whatever
    the scheme in front of it, is validated and fails with 403.
    """
    _scheme, token = get_authorization_scheme_param(authorization)
    if not token:
        raise UnauthenticatedError()
    return tokens.validate(token)
