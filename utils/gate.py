"""
Request-time gates, as plain ordered checks returning a tagged result.

authenticate() turns an `Authorization: Bearer <token>` header into an
Identity; authorize() additionally requires a role. Neither touches the
database: access tokens are self-contained, which also means they cannot be
revoked before they expire.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from utils.exceptions import TokenError
from utils.security import AccessClaims, Secret, TokenCodec

UNAUTHORIZED = "unauthorized"
FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


@dataclass(frozen=True)
class Continue:
    identity: Identity


@dataclass(frozen=True)
class Reject:
    kind: str
    reason: str = ""


GateResult = Union[Continue, Reject]


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    auth = headers.get("Authorization") or ""
    parts = auth.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def authenticate(headers: Mapping[str, str], codec: TokenCodec, secret: Secret) -> GateResult:
    token = bearer_token(headers)
    if token is None:
        return Reject(UNAUTHORIZED, "Missing or invalid Authorization header")
    try:
        claims = codec.verify(token, secret, AccessClaims)
    except TokenError as exc:
        return Reject(UNAUTHORIZED, str(exc))
    return Continue(Identity(user_id=claims.user_id, role=claims.role))


def authorize(identity: Optional[Identity], required_roles: Iterable[str]) -> GateResult:
    """Allow if the identity's role is one of `required_roles`.

    No identity means authentication never happened: that is unauthorized,
    not forbidden.
    """
    if identity is None:
        return Reject(UNAUTHORIZED, "Authentication required")
    if identity.role not in set(required_roles):
        return Reject(FORBIDDEN, "Insufficient role")
    return Continue(identity)


def gate(
    headers: Mapping[str, str],
    codec: TokenCodec,
    secret: Secret,
    required_roles: Optional[Iterable[str]] = None,
) -> GateResult:
    result = authenticate(headers, codec, secret)
    if isinstance(result, Reject) or required_roles is None:
        return result
    return authorize(result.identity, required_roles)
