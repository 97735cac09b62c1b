from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from _support import BASE_URL, RecordingNotifier
from leave_portal.core.config import Settings
from leave_portal.core.database import build_session_factory, create_tables
from leave_portal.main import create_app
from leave_portal.workflow.engine import LeaveWorkflow
from leave_portal.workflow.store import InMemoryLeaveRequestStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def memory_store() -> InMemoryLeaveRequestStore:
    return InMemoryLeaveRequestStore()


@pytest.fixture
def workflow(memory_store: InMemoryLeaveRequestStore, notifier: RecordingNotifier) -> LeaveWorkflow:
    return LeaveWorkflow(memory_store, notifier)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        BASE_URL=BASE_URL,
        EMAIL_DRY_RUN=True,
        SENDGRID_API_KEY=None,
        SMTP_USER=None,
    )


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
async def client(
    test_settings: Settings, session_factory, notifier: RecordingNotifier
) -> AsyncIterator[AsyncClient]:
    app = create_app(test_settings, session_factory=session_factory, notifier=notifier)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
