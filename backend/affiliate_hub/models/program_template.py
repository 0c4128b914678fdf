"""Program template model — the curated catalog the product reads from."""

from sqlalchemy import Column, String, Boolean, Integer, Text

from sqlalchemy.orm import relationship

from affiliate_hub.models.base import Base, TimestampMixin, UUIDMixin

AUTH_API_KEY = "API_KEY"
AUTH_CREDENTIALS = "CREDENTIALS"
AUTH_BOTH = "BOTH"
AUTH_TYPES = (AUTH_API_KEY, AUTH_CREDENTIALS, AUTH_BOTH)


class ProgramTemplate(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "program_templates"

    name = Column(String(255), nullable=False, index=True)
    software_type = Column(String(100), nullable=False, index=True)
    auth_type = Column(String(20), nullable=False, default=AUTH_CREDENTIALS)

    base_url = Column(Text)
    login_url = Column(Text)
    referral_url = Column(Text)
    description = Column(Text)
    icon = Column(String(255))

    # Per-field labels shown by the desktop client
    api_key_label = Column(String(100))
    username_label = Column(String(100))
    password_label = Column(String(100))
    base_url_label = Column(String(100))
    requires_base_url = Column(Boolean, default=False, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    # Relationships
    scraped_programs = relationship("ScrapedProgram", back_populates="template")
    selections = relationship("UserProgramSelection", back_populates="template", cascade="all, delete-orphan")
