from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class UserProfile(BaseModel, Base):
    __tablename__ = "user_profiles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True
    )
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(512), nullable=True)

    user = relationship("User", back_populates="profile")
