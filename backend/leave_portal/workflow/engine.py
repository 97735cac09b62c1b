"""Approval workflow engine.

Drives a leave request through manager -> HR -> MD review:

1. ``submit`` stores the request and issues the manager token
2. each ``record_*_decision`` resolves the request by that stage's token,
   records the verdict, issues the next stage's token and notifies its holder
3. ``fetch`` reads a request through one stage's token without changing it

A stage decides at most once. A second action on the same token is refused
with ``ConflictError`` and issues nothing.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from leave_portal.core.errors import ConflictError, NotFoundError, ValidationError
from leave_portal.models.leave_request import LeaveRequest
from leave_portal.notifications.dispatcher import Notifier
from leave_portal.notifications.messages import StageNotice
from leave_portal.workflow.states import (
    APPROVED_FIELDS,
    LeaveStatus,
    Stage,
    derive_status,
    is_approved,
)
from leave_portal.workflow.store import LeaveRequestStore
from leave_portal.workflow.tokens import new_stage_token

logger = logging.getLogger(__name__)

SUBMISSION_FIELDS = (
    "staff_name",
    "staff_no",
    "designation",
    "department",
    "leave_type",
    "start_date",
    "resumption_date",
    "total_days",
    "relief_staff",
    "contact_address",
    "manager_email",
)

# Routing email each party supplies for the next stage
_ROUTING_FIELDS = {
    Stage.MANAGER: "hr_email",
    Stage.HR: "md_email",
}


def _require(value: Optional[str], message: str) -> str:
    # Blank counts as missing, but the value is kept exactly as sent
    if not (value or "").strip():
        raise ValidationError(message)
    return value


class LeaveWorkflow:
    def __init__(self, store: LeaveRequestStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    async def submit(self, data: dict[str, Any]) -> LeaveRequest:
        fields = {name: data.get(name) for name in SUBMISSION_FIELDS}
        fields["staff_name"] = _require(fields["staff_name"], "staff_name is required")
        fields["manager_email"] = _require(fields["manager_email"], "manager_email is required")
        fields["total_days"] = fields["total_days"] or 0

        leave_request = LeaveRequest(
            id=uuid.uuid4(),
            request_token=new_stage_token(),
            status=LeaveStatus.PENDING.value,
            manager_approved=False,
            hr_approved=False,
            md_approved=False,
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        logger.info(
            "Saving leave request for staff %s (id=%s)",
            leave_request.staff_name,
            leave_request.id,
        )
        saved = await self.store.add(leave_request)

        self.notifier.notify(
            StageNotice(
                stage=Stage.MANAGER,
                recipient=saved.manager_email,
                staff_name=saved.staff_name,
                token=saved.request_token,
            )
        )
        return saved

    async def fetch(self, token: Optional[str], stage: Stage) -> LeaveRequest:
        token = _require(token, "token is required")
        leave_request = await self.store.get_by_token(stage, token)
        if leave_request is None:
            logger.warning("Unknown %s token presented", stage.value)
            raise NotFoundError("invalid or expired token")
        return leave_request

    async def record_manager_decision(
        self, token: Optional[str], decision: Optional[str], hr_email: Optional[str]
    ) -> LeaveStatus:
        routing = _require(hr_email, "hr_email is required")
        return await self._record(Stage.MANAGER, token, decision, routing)

    async def record_hr_decision(
        self, token: Optional[str], decision: Optional[str], md_email: Optional[str]
    ) -> LeaveStatus:
        routing = _require(md_email, "md_email is required")
        return await self._record(Stage.HR, token, decision, routing)

    async def record_md_decision(
        self, token: Optional[str], decision: Optional[str]
    ) -> LeaveStatus:
        return await self._record(Stage.MD, token, decision, None)

    async def _record(
        self,
        stage: Stage,
        token: Optional[str],
        decision: Optional[str],
        routing_email: Optional[str],
    ) -> LeaveStatus:
        token = _require(token, "token is required")
        decision = _require(decision, "status is required")

        leave_request = await self.store.get_by_token(stage, token)
        if leave_request is None:
            logger.warning("Leave request not found for %s token", stage.value)
            raise NotFoundError("request not found")
        if getattr(leave_request, stage.decision_field) is not None:
            logger.warning(
                "Repeated %s action on request %s ignored", stage.value, leave_request.id
            )
            raise ConflictError(f"{stage.value} decision already recorded")

        decisions = {
            s.decision_field: getattr(leave_request, s.decision_field)
            for s in (Stage.MANAGER, Stage.HR, Stage.MD)
        }
        decisions[stage.decision_field] = decision
        status = derive_status(**decisions)

        next_stage = stage.next
        next_token = new_stage_token()
        changes: dict[str, Any] = {
            stage.decision_field: decision,
            APPROVED_FIELDS[stage]: is_approved(decision),
            next_stage.token_field: next_token,
            "status": status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        if routing_email is not None:
            changes[_ROUTING_FIELDS[stage]] = routing_email
            recipient = routing_email
        else:
            # The final archive goes back to whoever handled HR
            recipient = leave_request.hr_email

        updated = await self.store.record_decision(leave_request.id, stage, changes)
        if updated is None:
            logger.warning(
                "Concurrent %s action on request %s lost the race", stage.value, leave_request.id
            )
            raise ConflictError(f"{stage.value} decision already recorded")

        logger.info(
            "%s decision '%s' recorded for %s; status now %r",
            stage.value,
            decision,
            updated.staff_name,
            status.value,
        )
        if status.is_terminal:
            logger.info("Leave request %s finalized: %s", updated.id, status.value)
        self.notifier.notify(
            StageNotice(
                stage=next_stage,
                recipient=recipient or "",
                staff_name=updated.staff_name,
                token=next_token,
                previous_decision=decision,
            )
        )
        return status
