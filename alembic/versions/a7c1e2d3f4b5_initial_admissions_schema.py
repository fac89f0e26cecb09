"""initial admissions schema

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-19 12:00:00.000000

This migration creates:
1. users (with user_role enum)
2. applications (with application_status enum) and the partial unique
   index that allows at most one submitted/under_review application per user
3. documents (with document_type enum); no ON DELETE CASCADE, the service
   layer removes documents and their blobs before the application row
4. admin_actions, the append-only admin audit log
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e2d3f4b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


user_role_enum = postgresql.ENUM("student", "admin", name="user_role", create_type=False)

application_status_enum = postgresql.ENUM(
    "submitted",
    "under_review",
    "evaluated",
    "accepted",
    "rejected",
    name="application_status",
    create_type=False,
)

document_type_enum = postgresql.ENUM(
    "transcript",
    "recommendation",
    "id",
    "certificate",
    "other",
    name="document_type",
    create_type=False,
)


def upgrade() -> None:
    """Create users, applications, documents and admin_actions."""
    bind = op.get_bind()
    user_role_enum.create(bind, checkfirst=True)
    application_status_enum.create(bind, checkfirst=True)
    document_type_enum.create(bind, checkfirst=True)

    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="student"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Applications
    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        # Applicant information
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        # Academic information
        sa.Column("high_school_name", sa.String(length=200), nullable=False),
        sa.Column("high_school_gpa", sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=False),
        sa.Column("intended_major", sa.String(length=200), nullable=False),
        sa.Column("extracurricular_activities", sa.Text(), nullable=True),
        sa.Column("personal_statement", sa.Text(), nullable=True),
        # Status and evaluation
        sa.Column(
            "status",
            application_status_enum,
            nullable=False,
            server_default="submitted",
        ),
        sa.Column("ai_score", sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column("ai_ranking", sa.String(length=100), nullable=True),
        sa.Column("ai_evaluation_date", sa.DateTime(timezone=True), nullable=True),
        # Review metadata
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "high_school_gpa IS NULL OR (high_school_gpa >= 0 AND high_school_gpa <= 4)",
            name="ck_applications_gpa_range",
        ),
        sa.CheckConstraint(
            "ai_score IS NULL OR (ai_score >= 0 AND ai_score <= 100)",
            name="ck_applications_ai_score_range",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_submitted_at", "applications", ["submitted_at"])
    op.create_index(
        "ix_applications_one_pending_per_user",
        "applications",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('submitted', 'under_review')"),
    )

    # Documents
    op.create_table(
        "documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_type", document_type_enum, nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("stored_filename", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stored_filename", name="uq_documents_stored_filename"),
    )
    op.create_index("ix_documents_application_id", "documents", ["application_id"])

    # Admin audit log
    op.create_table(
        "admin_actions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("admin_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=False),
        sa.Column("target_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["admin_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_actions_created_at", "admin_actions", ["created_at"])
    op.create_index("ix_admin_actions_target", "admin_actions", ["target_type", "target_id"])


def downgrade() -> None:
    """Drop all admissions tables and enum types."""
    op.drop_index("ix_admin_actions_target", table_name="admin_actions")
    op.drop_index("ix_admin_actions_created_at", table_name="admin_actions")
    op.drop_table("admin_actions")

    op.drop_index("ix_documents_application_id", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_applications_one_pending_per_user", table_name="applications")
    op.drop_index("ix_applications_submitted_at", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_table("applications")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    document_type_enum.drop(bind, checkfirst=True)
    application_status_enum.drop(bind, checkfirst=True)
    user_role_enum.drop(bind, checkfirst=True)
