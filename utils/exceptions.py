"""
Error taxonomy for the authentication core.

Credential and token errors are mapped to generic 401/403 responses in
api/errors.py; internal failures (hashing, signing, store) become 500s with
the detail only in the logs.
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class for every error raised by the auth core."""


class HashingError(AuthError):
    """Password hashing failed, or a stored digest is not a valid argon2 hash."""


class TokenError(AuthError):
    """A token could not be verified."""


class InvalidSignature(TokenError):
    pass


class Expired(TokenError):
    pass


class Malformed(TokenError):
    """Token is not a JWT, or its claims do not have the expected shape."""


class Unauthorized(AuthError):
    """Missing or bad credentials / access token."""


class Forbidden(AuthError):
    """Authenticated, but the role is not allowed."""


class InvalidRefreshToken(AuthError):
    """Bad signature, expired or revoked refresh token (deliberately one error)."""


class IssuanceFailure(AuthError):
    """Signing a token pair or persisting its session failed."""


class StoreUnavailable(AuthError):
    """The session or account store could not be reached."""
