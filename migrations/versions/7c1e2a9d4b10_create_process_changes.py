"""create_process_changes

Creates the process_changes table.

Created conditionally (IF NOT EXISTS semantics) so the migration is safe
against databases that already received the table via db.create_all()
in a development environment.

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-18 09:12:40.118204
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '7c1e2a9d4b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())
    if "process_changes" in existing:
        return

    op.create_table(
        "process_changes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False,
                  comment="PROPOSED | OPEN | SUBMITTED | ACCEPTED | REJECTED"),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("process_area", sa.String(length=20), nullable=False),
        sa.Column("change_owner", sa.Integer(), nullable=False,
                  comment="Actor id of the creator"),
        sa.Column("proposal_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("target_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acceptance_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("age_override", sa.Integer(), nullable=True,
                  comment="Explicit age of change in days"),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("change_overview", sa.Text(), nullable=False),
        sa.Column("general_comments", sa.Text(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False,
                  comment="Ordered file references"),
        sa.Column("spec_updated", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_process_changes_status", "process_changes", ["status"])
    op.create_index("ix_process_changes_process_area", "process_changes", ["process_area"])
    op.create_index("ix_process_changes_change_owner", "process_changes", ["change_owner"])
    op.create_index("ix_process_changes_updated_at", "process_changes", ["updated_at"])


def downgrade():
    op.drop_index("ix_process_changes_updated_at", table_name="process_changes")
    op.drop_index("ix_process_changes_change_owner", table_name="process_changes")
    op.drop_index("ix_process_changes_process_area", table_name="process_changes")
    op.drop_index("ix_process_changes_status", table_name="process_changes")
    op.drop_table("process_changes")
