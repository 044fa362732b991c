"""
Session store: persisted records backing outstanding refresh tokens.

A refresh token is only usable while a matching, unexpired record exists,
which is what makes logout and rotation able to revoke an otherwise
self-contained JWT. Records are keyed by a SHA-256 of the token so read
access to the table cannot mint sessions.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from utils.exceptions import StoreUnavailable
from utils.security import hash_token

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SessionStore(Protocol):
    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        ...

    def find(self, user_id: int, token: str, now: datetime) -> Optional[RefreshToken]:
        ...

    def delete(self, record: RefreshToken) -> None:
        ...

    def delete_token(self, token: str, user_id: Optional[int] = None) -> bool:
        ...

    def delete_for_user(self, user_id: int, commit: bool = True) -> int:
        ...

    def purge_expired(self, now: datetime) -> int:
        ...


class SqlSessionStore:
    """SessionStore on top of DBStorage (SQLAlchemy).

    Every method commits its own unit of work; any SQLAlchemyError is rolled
    back and re-raised as StoreUnavailable.
    """

    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _fail(self, action: str, exc: SQLAlchemyError):
        self.storage.rollback()
        logger.error("session store %s failed: %s", action, exc)
        raise StoreUnavailable(f"session store {action} failed") from exc

    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=_naive_utc(expires_at),
        )
        try:
            self.storage.new(record)
            self.storage.save()
        except SQLAlchemyError as exc:
            self._fail("create", exc)
        return record

    def find(self, user_id: int, token: str, now: datetime) -> Optional[RefreshToken]:
        session = self.storage.get_session()
        try:
            return (
                session.query(RefreshToken)
                .filter(
                    RefreshToken.user_id == user_id,
                    RefreshToken.token_hash == hash_token(token),
                    RefreshToken.expires_at > _naive_utc(now),
                )
                .first()
            )
        except SQLAlchemyError as exc:
            self._fail("lookup", exc)

    def delete(self, record: RefreshToken) -> None:
        try:
            self.storage.delete(record)
            self.storage.save()
        except SQLAlchemyError as exc:
            self._fail("delete", exc)

    def delete_token(self, token: str, user_id: Optional[int] = None) -> bool:
        """Delete the record for `token` (optionally only if owned by `user_id`).

        Returns False when nothing matched; absence is not an error.
        """
        session = self.storage.get_session()
        query = session.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(token))
        if user_id is not None:
            query = query.filter(RefreshToken.user_id == user_id)
        try:
            deleted = query.delete(synchronize_session=False)
            self.storage.save()
        except SQLAlchemyError as exc:
            self._fail("delete", exc)
        return bool(deleted)

    def delete_for_user(self, user_id: int, commit: bool = True) -> int:
        session = self.storage.get_session()
        try:
            deleted = (
                session.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id)
                .delete(synchronize_session=False)
            )
            if commit:
                self.storage.save()
        except SQLAlchemyError as exc:
            self._fail("delete", exc)
        return deleted

    def purge_expired(self, now: datetime) -> int:
        session = self.storage.get_session()
        try:
            purged = (
                session.query(RefreshToken)
                .filter(RefreshToken.expires_at <= _naive_utc(now))
                .delete(synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            self._fail("purge", exc)
        logger.info("purged %d expired refresh sessions", purged)
        return purged
