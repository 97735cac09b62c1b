"""Initial schema: users and leave requests

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # Leave requests
    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("staff_name", sa.String(255), nullable=False),
        sa.Column("staff_no", sa.String(100), nullable=True),
        sa.Column("designation", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("leave_type", sa.String(100), nullable=True),
        sa.Column("start_date", sa.String(50), nullable=True),
        sa.Column("resumption_date", sa.String(50), nullable=True),
        sa.Column("total_days", sa.Float, nullable=False, server_default="0"),
        sa.Column("relief_staff", sa.String(255), nullable=True),
        sa.Column("contact_address", sa.Text, nullable=True),
        sa.Column("manager_email", sa.String(255), nullable=False),
        sa.Column("hr_email", sa.String(255), nullable=True),
        sa.Column("md_email", sa.String(255), nullable=True),
        sa.Column("request_token", sa.String(64), nullable=False),
        sa.Column("hr_token", sa.String(64), nullable=True),
        sa.Column("md_token", sa.String(64), nullable=True),
        sa.Column("final_hr_token", sa.String(64), nullable=True),
        sa.Column("manager_decision", sa.Text, nullable=True),
        sa.Column("hr_decision", sa.Text, nullable=True),
        sa.Column("md_decision", sa.Text, nullable=True),
        sa.Column("manager_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("hr_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("md_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(100), nullable=False, server_default="Pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    for column in ("request_token", "hr_token", "md_token", "final_hr_token"):
        op.create_index(
            f"ix_leave_requests_{column}", "leave_requests", [column], unique=True
        )


def downgrade() -> None:
    for column in ("final_hr_token", "md_token", "hr_token", "request_token"):
        op.drop_index(f"ix_leave_requests_{column}", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_table("users")
