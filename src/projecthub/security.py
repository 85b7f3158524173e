"""Password hashing and bearer token primitives."""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from .config import Settings
from .errors import ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


class PasswordHasher:
    """Salted bcrypt hashing backed by passlib.

    ``bcrypt_sha256`` digests the full password before bcrypt, so input past
    bcrypt's 72-byte limit still counts.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt_sha256"],
            deprecated="auto",
            bcrypt_sha256__rounds=rounds,
        )
        # Verified against when no user matches, so misses cost the same as hits.
        self._dummy_hash = self._context.hash("projecthub-dummy-password")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            logger.warning("stored password hash is malformed")
            return False

    def dummy_verify(self, password: str) -> None:
        self._context.verify(password, self._dummy_hash)


class TokenService:
    """Issue and validate signed, time-limited access tokens."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(minutes=settings.access_token_expire_minutes)

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self._lifetime,
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> int:
        """Return the user id the token was issued for.

        Raises ``ExpiredTokenError`` once ``exp`` has passed and
        ``InvalidTokenError`` for any other verification failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError()
        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc
