"""create od requests

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


od_status = sa.Enum("pending", "class_approved", "hod_approved", "rejected", name="od_status")


def upgrade() -> None:
    op.create_table(
        "od_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_user_id", sa.String(length=36), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("student_id", sa.String(length=50), nullable=False),
        sa.Column("student_year", sa.String(length=20), nullable=False),
        sa.Column("student_department", sa.String(length=100), nullable=False),
        sa.Column("student_section", sa.String(length=20), nullable=False),
        sa.Column("event_name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("from_period", sa.Integer(), nullable=False),
        sa.Column("to_period", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("supporting_document_path", sa.String(length=500), nullable=True),
        sa.Column("proof_document_path", sa.String(length=500), nullable=False),
        sa.Column("status", od_status, nullable=False, server_default="pending"),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.String(length=36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("from_period <= to_period", name="ck_od_requests_period_range"),
    )
    op.create_index("ix_od_requests_student_user_id", "od_requests", ["student_user_id"], unique=False)
    op.create_index("ix_od_requests_date", "od_requests", ["date"], unique=False)
    op.create_index("ix_od_requests_status", "od_requests", ["status"], unique=False)
    op.create_index("ix_od_requests_created_at", "od_requests", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_od_requests_created_at", table_name="od_requests")
    op.drop_index("ix_od_requests_status", table_name="od_requests")
    op.drop_index("ix_od_requests_date", table_name="od_requests")
    op.drop_index("ix_od_requests_student_user_id", table_name="od_requests")
    op.drop_table("od_requests")
    od_status.drop(op.get_bind(), checkfirst=True)
