from models.base_model import Base, BaseModel, SoftDeleteMixin
from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    email_verified = Column(Boolean, nullable=False, default=False)

    profile = relationship(
        "UserProfile",
        back_populates="user",
        uselist=False,
        passive_deletes=True
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
