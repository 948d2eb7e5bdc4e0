"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates users, theses, access_requests and notifications.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("student", "admin", name="userrole")
access_request_status = sa.Enum(
    "pending", "approved", "rejected", "removed", "expired", "cancelled",
    name="accessrequeststatus",
)
notification_type = sa.Enum("info", "success", "warning", "error", name="notificationtype")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", user_role, nullable=False, server_default="student"),
        sa.Column("student_id", sa.String(30), nullable=True),
        sa.Column("college", sa.String(150), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- theses ---
    op.create_table(
        "theses",
        sa.Column("thesis_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("author", sa.String(255), nullable=False),
        sa.Column("college_department", sa.String(150), nullable=True),
        sa.Column("batch", sa.String(20), nullable=True),
        sa.Column("abstract", sa.Text, nullable=True),
        sa.Column("file_url", sa.String(1000), nullable=True),
        sa.Column("qr_code_url", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- access_requests ---
    op.create_table(
        "access_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("requester_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("thesis_id", sa.String(36), sa.ForeignKey("theses.thesis_id"), nullable=False),
        sa.Column("status", access_request_status, nullable=False, server_default="pending"),
        sa.Column("purpose", sa.Text, nullable=True),
        sa.Column("duration_days", sa.Integer, nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_warned_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_access_requests_requester_id", "access_requests", ["requester_id"])
    op.create_index("ix_access_requests_thesis_id", "access_requests", ["thesis_id"])
    op.create_index("ix_access_requests_status", "access_requests", ["status"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("thesis_id", sa.String(36), sa.ForeignKey("theses.thesis_id"), nullable=True),
        sa.Column("access_request_id", sa.String(36), sa.ForeignKey("access_requests.request_id"), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("type", notification_type, nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_access_requests_status", table_name="access_requests")
    op.drop_index("ix_access_requests_thesis_id", table_name="access_requests")
    op.drop_index("ix_access_requests_requester_id", table_name="access_requests")
    op.drop_table("access_requests")
    op.drop_table("theses")
    op.drop_table("users")
    notification_type.drop(op.get_bind(), checkfirst=True)
    access_request_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
