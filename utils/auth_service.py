"""
AuthService: the operations the HTTP layer calls.

- verify_credentials(identifier, password) -> User | Unauthorized
- issue_session(user_id, role)            -> TokenPair
- refresh_session(refresh_token)          -> TokenPair | InvalidRefreshToken
- end_session(refresh_token)              -> None (idempotent)
- authenticate(headers) / authorize(identity, roles) -> Continue | Reject

One instance is built per app by the factory from an AuthConfig; it holds no
mutable state of its own.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from models.accounts import AccountStore
from models.session_store import SessionStore
from models.user import User
from utils import gate as gates
from utils.exceptions import Unauthorized
from utils.security import AuthConfig, CredentialHasher, TokenCodec
from utils.tokens import RefreshCoordinator, TokenIssuer, TokenPair

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        config: AuthConfig,
        accounts: AccountStore,
        sessions: SessionStore,
        hasher: Optional[CredentialHasher] = None,
        codec: Optional[TokenCodec] = None,
    ):
        self.config = config
        self.accounts = accounts
        self.sessions = sessions
        self.hasher = hasher or CredentialHasher()
        self.codec = codec or TokenCodec()
        self.issuer = TokenIssuer(self.codec, sessions, config)
        self.coordinator = RefreshCoordinator(
            self.codec, sessions, self.issuer, accounts.current_role, config
        )
        # verified against when the user does not exist, so both paths cost one argon2 run
        self._dummy_digest = self.hasher.hash("timing-equalization-dummy")

    # -- passwords -------------------------------------------------------

    def hash_password(self, plaintext: str) -> str:
        return self.hasher.hash(plaintext)

    def check_password(self, digest: str, plaintext: str) -> bool:
        return self.hasher.verify(digest, plaintext)

    def verify_credentials(self, identifier: str, password: str) -> User:
        user = self.accounts.find_by_login(identifier)
        if user is None:
            self.hasher.verify(self._dummy_digest, password)
            raise Unauthorized("Invalid credentials")
        if not self.hasher.verify(user.password_hash, password):
            logger.warning("failed login attempt for user_id=%s", user.id)
            raise Unauthorized("Invalid credentials")
        if self.hasher.needs_rehash(user.password_hash):
            self.accounts.update_password_hash(user, self.hasher.hash(password))
        return user

    # -- sessions --------------------------------------------------------

    def issue_session(self, user_id: int, role: str) -> TokenPair:
        return self.issuer.issue_token_pair(user_id, role)

    def refresh_session(self, refresh_token: str) -> TokenPair:
        return self.coordinator.refresh(refresh_token)

    def end_session(self, refresh_token: str, user_id: Optional[int] = None) -> None:
        """Delete the session behind `refresh_token`. Absence is not an error."""
        if not self.sessions.delete_token(refresh_token, user_id=user_id):
            logger.debug("logout for unknown or already ended session (user_id=%s)", user_id)

    def end_all_sessions(self, user_id: int, commit: bool = True) -> int:
        return self.sessions.delete_for_user(user_id, commit=commit)

    def purge_expired_sessions(self) -> int:
        return self.sessions.purge_expired(self.codec.clock())

    # -- gates -----------------------------------------------------------

    def authenticate(self, headers: Mapping[str, str]) -> gates.GateResult:
        return gates.authenticate(headers, self.codec, self.config.access_secret)

    def authorize(self, identity: Optional[gates.Identity], required_roles: Iterable[str]) -> gates.GateResult:
        return gates.authorize(identity, required_roles)

    def gate(self, headers: Mapping[str, str], required_roles: Optional[Iterable[str]] = None) -> gates.GateResult:
        return gates.gate(headers, self.codec, self.config.access_secret, required_roles)
