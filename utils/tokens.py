"""
Token pair issuance and refresh-token rotation.

TokenIssuer signs an access/refresh pair and records the refresh half in the
session store. RefreshCoordinator exchanges a refresh token for a new pair:

    RECEIVED -> SIGNATURE_VALIDATED -> SESSION_CONFIRMED -> ROTATED
    (any failure)                                        -> REJECTED

Rotation inserts the new session before deleting the consumed one, so a
crash in between leaves the old token usable rather than locking the user out.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import jwt

from models.session_store import SessionStore
from utils.exceptions import (
    AuthError,
    InvalidRefreshToken,
    IssuanceFailure,
    StoreUnavailable,
    TokenError,
)
from utils.security import AccessClaims, AuthConfig, RefreshClaims, TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


class RefreshState(enum.Enum):
    RECEIVED = "received"
    SIGNATURE_VALIDATED = "signature_validated"
    SESSION_CONFIRMED = "session_confirmed"
    ROTATED = "rotated"
    REJECTED = "rejected"


class TokenIssuer:
    def __init__(self, codec: TokenCodec, store: SessionStore, config: AuthConfig):
        self.codec = codec
        self.store = store
        self.config = config

    def issue_token_pair(self, user_id: int, role: str) -> TokenPair:
        """Sign a fresh pair for (user_id, role) and persist the refresh session.

        Nothing is written to the store unless both tokens signed.
        """
        issued_at = self.codec.clock()
        try:
            access = self.codec.issue(
                AccessClaims(user_id=user_id, role=role),
                self.config.access_secret,
                self.config.access_lifetime,
                issued_at=issued_at,
            )
            refresh = self.codec.issue(
                RefreshClaims(user_id=user_id),
                self.config.refresh_secret,
                self.config.refresh_lifetime,
                issued_at=issued_at,
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise IssuanceFailure("failed to sign token pair") from exc

        try:
            self.store.create(user_id, refresh, issued_at + self.config.refresh_lifetime)
        except StoreUnavailable as exc:
            raise IssuanceFailure("failed to persist refresh session") from exc

        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=int(self.config.access_lifetime.total_seconds()),
        )


class RefreshCoordinator:
    """Validates a refresh token against codec and store, then rotates it.

    `role_lookup(user_id)` returns the account's current role, or None if the
    account no longer exists. The role is never taken from the refresh token.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: SessionStore,
        issuer: TokenIssuer,
        role_lookup: Callable[[int], Optional[str]],
        config: AuthConfig,
    ):
        self.codec = codec
        self.store = store
        self.issuer = issuer
        self.role_lookup = role_lookup
        self.config = config

    def _reject(self, state: RefreshState, reason: str, user_id=None) -> InvalidRefreshToken:
        logger.info("refresh rejected at %s: %s (user_id=%s)", state.value, reason, user_id)
        return InvalidRefreshToken("Invalid refresh token")

    def refresh(self, token: str) -> TokenPair:
        state = RefreshState.RECEIVED
        try:
            claims = self.codec.verify(token, self.config.refresh_secret, RefreshClaims)
        except TokenError as exc:
            raise self._reject(state, str(exc)) from exc
        state = RefreshState.SIGNATURE_VALIDATED

        record = self.store.find(claims.user_id, token, self.codec.clock())
        if record is None:
            raise self._reject(state, "no live session", claims.user_id)
        state = RefreshState.SESSION_CONFIRMED

        role = self.role_lookup(claims.user_id)
        if role is None:
            raise self._reject(state, "account not found", claims.user_id)

        pair = self.issuer.issue_token_pair(claims.user_id, role)

        try:
            self.store.delete(record)
        except AuthError:
            # caller already holds the new pair; the old record expires on its own
            logger.warning(
                "failed to retire consumed refresh session for user_id=%s", claims.user_id, exc_info=True
            )
        state = RefreshState.ROTATED
        logger.debug("refresh %s for user_id=%s", state.value, claims.user_id)
        return pair
