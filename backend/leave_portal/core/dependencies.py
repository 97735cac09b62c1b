from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.notifications.dispatcher import Notifier
from leave_portal.services.accounts import AccountService
from leave_portal.workflow.engine import LeaveWorkflow
from leave_portal.workflow.store import SqlLeaveRequestStore


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_workflow(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> LeaveWorkflow:
    return LeaveWorkflow(SqlLeaveRequestStore(db), notifier)


def get_account_service(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)
