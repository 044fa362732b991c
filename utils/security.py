"""
security helpers:
- Argon2 password hashing via argon2-cffi (CredentialHasher)
- JWT creation/verification via PyJWT (TokenCodec)
- Typed claim sets for access and refresh tokens
- AuthConfig: the secrets and lifetimes every component is built with
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Type, TypeVar, Union

import jwt
from argon2 import PasswordHasher
from argon2 import exceptions as argon2_exc

from utils.exceptions import Expired, HashingError, InvalidSignature, Malformed

ROLES = ("user", "admin")
JWT_ALGORITHM = "HS256"

Secret = Union[str, bytes]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_token(token: str) -> str:
    """One-way digest of a token, used as the session lookup key."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class AuthConfig:
    """Secrets and lifetimes for the token pair.

    Built once from the Flask config by the app factory and handed to each
    component; nothing in the core reads app.config directly.
    """

    access_secret: Secret
    refresh_secret: Secret
    access_lifetime: timedelta = timedelta(minutes=15)
    refresh_lifetime: timedelta = timedelta(days=7)

    def __post_init__(self):
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("access and refresh secrets must be set")
        if self.access_secret == self.refresh_secret:
            raise ValueError("access and refresh secrets must differ")
        if self.access_lifetime <= timedelta(0) or self.refresh_lifetime <= timedelta(0):
            raise ValueError("token lifetimes must be positive")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "AuthConfig":
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_lifetime=timedelta(minutes=int(config["JWT_ACCESS_EXPIRES_MINUTES"])),
            refresh_lifetime=timedelta(days=int(config["JWT_REFRESH_EXPIRES_DAYS"])),
        )


class CredentialHasher:
    """Salted argon2id hashing with constant-time verification."""

    def __init__(self, time_cost: Optional[int] = None, memory_cost: Optional[int] = None):
        kwargs = {}
        if time_cost:
            kwargs["time_cost"] = time_cost
        if memory_cost:
            kwargs["memory_cost"] = memory_cost
        self._ph = PasswordHasher(**kwargs)

    def hash(self, plaintext: str) -> str:
        try:
            return self._ph.hash(plaintext)
        except argon2_exc.HashingError as exc:
            raise HashingError("password hashing failed") from exc

    def verify(self, digest: str, plaintext: str) -> bool:
        """Return True if `plaintext` matches `digest`.

        A wrong password is False, never an exception; only a digest that is
        not an argon2 hash raises HashingError.
        """
        try:
            return self._ph.verify(digest, plaintext)
        except argon2_exc.VerifyMismatchError:
            return False
        except argon2_exc.InvalidHashError as exc:
            raise HashingError("stored password digest is malformed") from exc
        except argon2_exc.VerificationError:
            return False

    def needs_rehash(self, digest: str) -> bool:
        try:
            return self._ph.check_needs_rehash(digest)
        except argon2_exc.InvalidHashError as exc:
            raise HashingError("stored password digest is malformed") from exc


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; a `true` identity claim is not an identity
    if not isinstance(value, int) or isinstance(value, bool):
        raise Malformed(f"claim '{key}' must be an integer")
    return value


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise Malformed(f"claim '{key}' must be a non-empty string")
    return value


@dataclass(frozen=True)
class AccessClaims:
    token_type: ClassVar[str] = "access"

    user_id: int
    role: str
    expires_at: Optional[datetime] = field(default=None, compare=False)

    def to_payload(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "role": self.role}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AccessClaims":
        role = _require_str(payload, "role")
        if role not in ROLES:
            raise Malformed(f"unknown role '{role}'")
        return cls(
            user_id=_require_int(payload, "user_id"),
            role=role,
            expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc),
        )


@dataclass(frozen=True)
class RefreshClaims:
    token_type: ClassVar[str] = "refresh"

    user_id: int
    jti: str = field(default_factory=generate_jti)
    expires_at: Optional[datetime] = field(default=None, compare=False)

    def to_payload(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "jti": self.jti}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RefreshClaims":
        if "role" in payload:
            raise Malformed("refresh tokens do not carry a role")
        return cls(
            user_id=_require_int(payload, "user_id"),
            jti=_require_str(payload, "jti"),
            expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc),
        )


Claims = TypeVar("Claims", AccessClaims, RefreshClaims)


class TokenCodec:
    """Signs and verifies expiring claim sets as HS256 JWTs.

    Expiry is checked against the injected clock rather than PyJWT's own, so
    `now >= exp` is the single rule and tests can move time.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def issue(self, claims, secret: Secret, lifetime: timedelta, issued_at: Optional[datetime] = None) -> str:
        issued_at = issued_at or self.clock()
        payload = claims.to_payload()
        payload["type"] = claims.token_type
        payload["exp"] = int((issued_at + lifetime).timestamp())
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str, secret: Secret, claims_type: Type[Claims]) -> Claims:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "type"]},
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignature("token signature mismatch") from exc
        except jwt.InvalidTokenError as exc:
            raise Malformed(f"invalid token: {exc}") from exc

        exp = _require_int(payload, "exp")
        if payload.get("type") != claims_type.token_type:
            raise Malformed("wrong token type")
        if self.clock().timestamp() >= exp:
            raise Expired("token expired")
        return claims_type.from_payload(payload)
