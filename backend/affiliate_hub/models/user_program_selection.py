"""User program selection — "this account wants this program tracked"."""

from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from affiliate_hub.models.base import Base

SOURCE_WEB = "web"
SOURCE_CLIENT = "client"


class UserProgramSelection(Base):
    __tablename__ = "user_program_selections"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    template_id = Column(UUID(as_uuid=True), ForeignKey("program_templates.id", ondelete="CASCADE"), primary_key=True)
    source = Column(String(20), nullable=False, default=SOURCE_WEB)
    selected_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="program_selections")
    template = relationship("ProgramTemplate", back_populates="selections")
