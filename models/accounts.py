"""
Account lookups consumed by the auth core: find by login identifier, fetch
by id, and read the current role. Soft-deleted users are invisible here.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User
from utils.exceptions import StoreUnavailable


class AccountStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _active(self):
        return self.storage.get_session().query(User).filter(User.deleted_at.is_(None))

    def find_by_login(self, identifier: str) -> Optional[User]:
        """Email if the identifier contains '@', username otherwise."""
        identifier = (identifier or "").strip()
        if "@" in identifier:
            criterion = User.email == identifier.lower()
        else:
            criterion = User.username == identifier
        try:
            return self._active().filter(criterion).first()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable("account lookup failed") from exc

    def get(self, user_id: int) -> Optional[User]:
        try:
            return self._active().filter(User.id == user_id).first()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable("account lookup failed") from exc

    def current_role(self, user_id: int) -> Optional[str]:
        user = self.get(user_id)
        return user.role if user else None

    def update_password_hash(self, user: User, digest: str) -> None:
        user.password_hash = digest
        try:
            self.storage.new(user)
            self.storage.save()
        except SQLAlchemyError as exc:
            raise StoreUnavailable("account update failed") from exc
