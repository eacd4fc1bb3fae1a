"""Security primitives — password hashing and signed bearer tokens."""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from accounts_api.config import Settings
from accounts_api.domain.schemas.auth import Identity

_PASSWORD_SCHEME = "pbkdf2_sha256"


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be trusted, whatever the reason."""


class PasswordHasher:
    """Salted, deliberately slow one-way hashing with a tunable work factor."""

    def __init__(self, rounds: int = 290000):
        self._context = CryptContext(
            schemes=[_PASSWORD_SCHEME],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        if not isinstance(password, str) or not password:
            raise ValueError("password_blank")
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password; a malformed or missing hash is a plain mismatch."""
        if not isinstance(password, str) or not isinstance(password_hash, str):
            return False
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> None:
        """Spend the same work as a real verification against nothing."""
        self._context.dummy_verify()


class TokenService:
    """Issues and verifies HMAC-signed JWTs carrying {sub, email, role}."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60):
        if not secret:
            raise ValueError("jwt_secret_blank")
        if not algorithm or algorithm.lower() == "none":
            raise ValueError("jwt_algorithm_unsigned")
        self._secret = secret
        self._algorithm = algorithm
        self.default_ttl = timedelta(minutes=expires_minutes)

    def issue(self, identity: Identity, ttl: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (ttl if ttl is not None else self.default_ttl)
        payload: Dict[str, Any] = {
            "sub": identity.id,
            "email": identity.email,
            "role": identity.role.value,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """Return the token's claims or raise InvalidTokenError.

        Only the configured algorithm is accepted, so unsigned (alg=none) and
        algorithm-swapped tokens fail like any bad signature. Expiry has no
        leeway: the token stops verifying at the instant of its
        ``exp`` claim.
        """
        if not isinstance(token, str) or not token:
            raise InvalidTokenError("token_blank")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_sub": True, "leeway": 0},
            )
            # jose only rejects exp < now, in whole seconds
            if payload["exp"] <= time.time():
                raise InvalidTokenError("token_expired")
            return Identity(id=payload["sub"], email=payload["email"], role=payload["role"])
        except ExpiredSignatureError as exc:
            raise InvalidTokenError("token_expired") from exc
        except JWTError as exc:
            raise InvalidTokenError("token_invalid") from exc
        except (KeyError, TypeError, ValidationError) as exc:
            raise InvalidTokenError("token_malformed") from exc


def build_password_hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS)


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        secret=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=settings.JWT_EXPIRATION_MINUTES,
    )
