"""Initial schema — users, scrape_jobs, program_templates, scraped_programs, selections.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("api_key", sa.String(100), unique=True, index=True),
        sa.Column("role", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Scrape jobs
    op.create_table(
        "scrape_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("software", sa.String(100), nullable=False, server_default="all"),
        sa.Column("status", sa.String(20), nullable=False, server_default="running", index=True),
        sa.Column("programs_found", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("current_progress", sa.String(255)),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("error", sa.Text),
    )

    # Program templates
    op.create_table(
        "program_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("software_type", sa.String(100), nullable=False, index=True),
        sa.Column("auth_type", sa.String(20), nullable=False, server_default="CREDENTIALS"),
        sa.Column("base_url", sa.Text),
        sa.Column("login_url", sa.Text),
        sa.Column("referral_url", sa.Text),
        sa.Column("description", sa.Text),
        sa.Column("icon", sa.String(255)),
        sa.Column("api_key_label", sa.String(100)),
        sa.Column("username_label", sa.String(100)),
        sa.Column("password_label", sa.String(100)),
        sa.Column("base_url_label", sa.String(100)),
        sa.Column("requires_base_url", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("display_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Scraped programs
    op.create_table(
        "scraped_programs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("software", sa.String(100), index=True),
        sa.Column("commission", sa.Text),
        sa.Column("api_support", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("available_in_directory", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("category", sa.String(100), index=True),
        sa.Column("logo_url", sa.Text),
        sa.Column("review_url", sa.Text),
        sa.Column("join_url", sa.Text),
        sa.Column("final_join_url", sa.Text),
        sa.Column("source_url", sa.Text),
        sa.Column("mapped_to_template", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("program_templates.id", ondelete="SET NULL")),
        sa.Column("status", sa.String(50), nullable=False, server_default="new"),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_scraped_program_export", "scraped_programs", ["mapped_to_template", "api_support"])

    # Selections
    op.create_table(
        "user_program_selections",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("program_templates.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="web"),
        sa.Column("selected_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_program_selections")
    op.drop_table("scraped_programs")
    op.drop_table("program_templates")
    op.drop_table("scrape_jobs")
    op.drop_table("users")
