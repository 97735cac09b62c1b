"""Seed script for the leave approval portal.

Populates the database with demo data for trying the review pages:
- 1 staff account (password: password123)
- 4 leave requests, one waiting at each stage (manager, HR, MD, archive)

Prints the deep link each party would have received by email.

Usage:
    cd backend && python seed.py
"""

import asyncio
import os
import sys

from sqlalchemy import select

# Ensure the backend directory is on the path when running from backend/
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from leave_portal.core.config import settings
from leave_portal.core.database import build_engine, build_session_factory, create_tables
from leave_portal.core.security import hash_password
from leave_portal.models import User
from leave_portal.notifications.messages import StageNotice, build_link
from leave_portal.workflow.engine import LeaveWorkflow
from leave_portal.workflow.states import APPROVED, REJECTED, LeaveStatus
from leave_portal.workflow.store import SqlLeaveRequestStore

DEMO_USER = {
    "full_name": "Ada Obi",
    "email": "ada.obi@example.com",
    "phone_number": "+2348000000000",
}

REQUESTS = [
    # (staff_name, leave_type, decisions taken so far)
    ("Ada Obi", "Annual", []),
    ("Chidi Eze", "Sick", [APPROVED]),
    ("Ngozi Bello", "Annual", [APPROVED, REJECTED]),
    ("Tunde Lawal", "Compassionate", [APPROVED, APPROVED, APPROVED]),
]


class CollectingNotifier:
    def __init__(self):
        self.notices: list[StageNotice] = []

    def notify(self, notice: StageNotice) -> None:
        self.notices.append(notice)


async def seed():
    engine = build_engine(settings)
    await create_tables(engine)
    session_factory = build_session_factory(engine)
    base_url = settings.BASE_URL or "http://localhost:8080"

    async with session_factory() as db:
        # 1. Staff account
        existing = await db.execute(select(User).where(User.email == DEMO_USER["email"]))
        if existing.scalar_one_or_none() is None:
            db.add(User(hashed_password=hash_password("password123"), **DEMO_USER))
            await db.commit()
            print(f"   ✅ Staff account {DEMO_USER['email']} created")
        else:
            print(f"   ⏭️  Staff account {DEMO_USER['email']} already exists")

        # 2. Leave requests at each stage
        notifier = CollectingNotifier()
        workflow = LeaveWorkflow(SqlLeaveRequestStore(db), notifier)
        for idx, (staff_name, leave_type, decisions) in enumerate(REQUESTS, start=1):
            leave_request = await workflow.submit(
                {
                    "staff_name": staff_name,
                    "staff_no": f"PD-{idx:04d}",
                    "designation": "Engineer",
                    "department": "Operations",
                    "leave_type": leave_type,
                    "start_date": "2026-11-02",
                    "resumption_date": "2026-11-09",
                    "total_days": 5,
                    "relief_staff": "On-call rota",
                    "contact_address": "12 Marina Road, Lagos",
                    "manager_email": "manager@example.com",
                }
            )
            token = leave_request.request_token
            status = leave_request.status
            if len(decisions) > 0:
                status = await workflow.record_manager_decision(token, decisions[0], "hr@example.com")
                token = notifier.notices[-1].token
            if len(decisions) > 1:
                status = await workflow.record_hr_decision(token, decisions[1], "md@example.com")
                token = notifier.notices[-1].token
            if len(decisions) > 2:
                status = await workflow.record_md_decision(token, decisions[2])

            stage = notifier.notices[-1].stage
            link = build_link(base_url, stage, notifier.notices[-1].token)
            print(f"   ✅ {staff_name:<12} {LeaveStatus(status).value:<40} {link}")

    await engine.dispose()
    print("\n✅ Database seeding complete!")


# ── Entry Point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 60)
    print("🌱 Leave Portal Seed Script")
    print("=" * 60)
    asyncio.run(seed())
