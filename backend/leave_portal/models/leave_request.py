import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from leave_portal.core.database import Base


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Submission fields, never changed after creation
    staff_name: Mapped[str] = mapped_column(String(255), nullable=False)
    staff_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    designation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    leave_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resumption_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    total_days: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    relief_staff: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Routing, filled in stage by stage
    manager_email: Mapped[str] = mapped_column(String(255), nullable=False)
    hr_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    md_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Stage tokens
    request_token: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    hr_token: Mapped[str | None] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )
    md_token: Mapped[str | None] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )
    final_hr_token: Mapped[str | None] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )

    # Decisions, stored verbatim
    manager_decision: Mapped[str | None] = mapped_column(Text, nullable=True)
    hr_decision: Mapped[str | None] = mapped_column(Text, nullable=True)
    md_decision: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hr_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    md_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Pending"
    )  # see leave_portal.workflow.states.LeaveStatus
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
