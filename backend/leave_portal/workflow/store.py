"""Leave request storage.

Provides an abstract base class for the operations the workflow engine needs,
with two implementations:
1. SqlLeaveRequestStore - SQLAlchemy async session, used by the API
2. InMemoryLeaveRequestStore - plain dict, for tests and local experiments

Decisions are written with a compare-and-set on the stage's decision column,
so two actions racing on the same stage token cannot both succeed.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.core.errors import PersistenceError
from leave_portal.models.leave_request import LeaveRequest
from leave_portal.workflow.states import Stage

logger = logging.getLogger(__name__)


class LeaveRequestStore(ABC):
    """Abstract persistence for leave requests."""

    @abstractmethod
    async def add(self, leave_request: LeaveRequest) -> LeaveRequest:
        ...

    @abstractmethod
    async def get(self, request_id: UUID) -> Optional[LeaveRequest]:
        ...

    @abstractmethod
    async def get_by_token(self, stage: Stage, token: str) -> Optional[LeaveRequest]:
        ...

    @abstractmethod
    async def record_decision(
        self, request_id: UUID, stage: Stage, changes: dict[str, Any]
    ) -> Optional[LeaveRequest]:
        """Apply ``changes`` only if ``stage`` has no decision yet.

        Returns the updated request, or None when the request is missing or
        the stage was already decided.
        """
        ...


class SqlLeaveRequestStore(LeaveRequestStore):
    """Implementation backed by the database. Each write is committed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, leave_request: LeaveRequest) -> LeaveRequest:
        try:
            self.db.add(leave_request)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to create leave record: %s", e)
            raise PersistenceError("failed to persist request")
        return leave_request

    async def get(self, request_id: UUID) -> Optional[LeaveRequest]:
        try:
            return await self.db.get(LeaveRequest, request_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.exception("Failed to load leave request %s: %s", request_id, e)
            raise PersistenceError("failed to load request")

    async def get_by_token(self, stage: Stage, token: str) -> Optional[LeaveRequest]:
        column = getattr(LeaveRequest, stage.token_field)
        try:
            result = await self.db.execute(
                select(LeaveRequest).where(column == token)
            )
        except SQLAlchemyError as e:
            logger.exception("Failed to look up %s token: %s", stage.value, e)
            raise PersistenceError("failed to load request")
        return result.scalar_one_or_none()

    async def record_decision(
        self, request_id: UUID, stage: Stage, changes: dict[str, Any]
    ) -> Optional[LeaveRequest]:
        decision_column = getattr(LeaveRequest, stage.decision_field)
        try:
            result = await self.db.execute(
                update(LeaveRequest)
                .where(LeaveRequest.id == request_id, decision_column.is_(None))
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to save %s action: %s", stage.value, e)
            raise PersistenceError("failed to save action")

        if result.rowcount != 1:
            return None
        return await self.get(request_id)


class InMemoryLeaveRequestStore(LeaveRequestStore):
    """Implementation keeping transient ``LeaveRequest`` objects in a dict."""

    def __init__(self) -> None:
        self._items: dict[UUID, LeaveRequest] = {}
        self._lock = asyncio.Lock()

    async def add(self, leave_request: LeaveRequest) -> LeaveRequest:
        async with self._lock:
            if leave_request.id in self._items:
                raise PersistenceError("failed to persist request")
            for stage in Stage:
                token = getattr(leave_request, stage.token_field)
                if token and self._find(stage, token) is not None:
                    raise PersistenceError("failed to persist request")
            self._items[leave_request.id] = leave_request
        return leave_request

    async def get(self, request_id: UUID) -> Optional[LeaveRequest]:
        return self._items.get(request_id)

    async def get_by_token(self, stage: Stage, token: str) -> Optional[LeaveRequest]:
        return self._find(stage, token)

    async def record_decision(
        self, request_id: UUID, stage: Stage, changes: dict[str, Any]
    ) -> Optional[LeaveRequest]:
        async with self._lock:
            leave_request = self._items.get(request_id)
            if leave_request is None or getattr(leave_request, stage.decision_field) is not None:
                return None
            for field, value in changes.items():
                setattr(leave_request, field, value)
            return leave_request

    def all(self) -> list[LeaveRequest]:
        return list(self._items.values())

    def _find(self, stage: Stage, token: str) -> Optional[LeaveRequest]:
        for leave_request in self._items.values():
            if getattr(leave_request, stage.token_field) == token:
                return leave_request
        return None
