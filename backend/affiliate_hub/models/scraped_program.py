"""Scraped program model — one row per directory listing, keyed by slug."""

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from affiliate_hub.models.base import Base, UUIDMixin

STATUS_NEW = "new"
STATUS_ADDED_AS_TEMPLATE = "added_as_template"


class ScrapedProgram(UUIDMixin, Base):
    __tablename__ = "scraped_programs"

    # Natural key from the directory's program link
    slug = Column(String(255), unique=True, nullable=False, index=True)

    name = Column(String(255), nullable=False)
    software = Column(String(100), index=True)
    commission = Column(Text)
    api_support = Column(Boolean, default=False, nullable=False)
    available_in_directory = Column(Boolean, default=False, nullable=False)
    category = Column(String(100), index=True)

    # Links
    logo_url = Column(Text)
    review_url = Column(Text)
    join_url = Column(Text)
    final_join_url = Column(Text)  # resolved + cleaned join_url
    source_url = Column(Text)

    # Template mapping (back-reference only)
    mapped_to_template = Column(Boolean, default=False, nullable=False)
    template_id = Column(UUID(as_uuid=True), ForeignKey("program_templates.id", ondelete="SET NULL"))
    status = Column(String(50), default=STATUS_NEW, nullable=False)

    scraped_at = Column(DateTime(timezone=True), nullable=False)
    last_checked_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    template = relationship("ProgramTemplate", back_populates="scraped_programs")

    __table_args__ = (
        Index("idx_scraped_program_export", "mapped_to_template", "api_support"),
    )
