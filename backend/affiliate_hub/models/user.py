"""User model — account store boundary for sessions and client API keys."""

from sqlalchemy import Column, String, Boolean, DateTime, Integer
from sqlalchemy.orm import relationship

from affiliate_hub.models.base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    api_key = Column(String(100), unique=True, index=True)
    role = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True))

    # Relationships
    program_selections = relationship(
        "UserProgramSelection", back_populates="user", cascade="all, delete-orphan"
    )
