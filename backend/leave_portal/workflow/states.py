"""Workflow stages and status derivation.

A request moves manager -> HR -> MD -> archive. Every stage hands the request
on regardless of the verdict; only the MD decision is final. The status label
is never set by hand, it is always computed from the recorded decisions.
"""

from __future__ import annotations

import enum
from typing import Optional

APPROVED = "Approved"
REJECTED = "Rejected"


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    PENDING_HR_REVIEW = "Pending HR Review"
    REJECTED_BY_MANAGER = "Rejected by Manager - Pending HR Filing"
    PENDING_MD_APPROVAL = "Pending MD Final Approval"
    REJECTED_BY_HR = "Rejected by HR - Pending MD Review"
    FULLY_APPROVED = "Fully Approved"
    REJECTED_BY_MD = "Rejected by MD"

    @property
    def is_terminal(self) -> bool:
        return self in (LeaveStatus.FULLY_APPROVED, LeaveStatus.REJECTED_BY_MD)


class Stage(str, enum.Enum):
    """A workflow stage, named after the party holding its token."""

    MANAGER = "manager"
    HR = "hr"
    MD = "md"
    ARCHIVE = "archive"

    @property
    def token_field(self) -> str:
        return _TOKEN_FIELDS[self]

    @property
    def page(self) -> str:
        return _PAGES[self]

    @property
    def decision_field(self) -> Optional[str]:
        """Decision recorded by the holder of this stage's token (none for archive)."""
        return _DECISION_FIELDS.get(self)

    @property
    def next(self) -> Optional["Stage"]:
        order = list(Stage)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else None


_TOKEN_FIELDS = {
    Stage.MANAGER: "request_token",
    Stage.HR: "hr_token",
    Stage.MD: "md_token",
    Stage.ARCHIVE: "final_hr_token",
}

_PAGES = {
    Stage.MANAGER: "approve.html",
    Stage.HR: "approve_hr.html",
    Stage.MD: "approve_md.html",
    Stage.ARCHIVE: "final_archive.html",
}

_DECISION_FIELDS = {
    Stage.MANAGER: "manager_decision",
    Stage.HR: "hr_decision",
    Stage.MD: "md_decision",
}

APPROVED_FIELDS = {
    Stage.MANAGER: "manager_approved",
    Stage.HR: "hr_approved",
    Stage.MD: "md_approved",
}


def is_approved(decision: Optional[str]) -> bool:
    # Exact match only: "approved" or "APPROVED" count as not approved.
    return decision == APPROVED


def derive_status(
    manager_decision: Optional[str],
    hr_decision: Optional[str],
    md_decision: Optional[str],
) -> LeaveStatus:
    if md_decision is not None:
        return LeaveStatus.FULLY_APPROVED if is_approved(md_decision) else LeaveStatus.REJECTED_BY_MD
    if hr_decision is not None:
        return LeaveStatus.PENDING_MD_APPROVAL if is_approved(hr_decision) else LeaveStatus.REJECTED_BY_HR
    if manager_decision is not None:
        return LeaveStatus.PENDING_HR_REVIEW if is_approved(manager_decision) else LeaveStatus.REJECTED_BY_MANAGER
    return LeaveStatus.PENDING
