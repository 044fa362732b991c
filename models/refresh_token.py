"""
RefreshToken model: one row per outstanding refresh session.
Fields:
- user_id (Integer) - FK to users.id
- token_hash - SHA-256 of the refresh token; the token itself is never stored
- expires_at (naive UTC)
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id} expires_at={self.expires_at}>"
