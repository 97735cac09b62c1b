"""Leave workflow endpoints.

Each party reaches its page through the token in its email; the page reads
the request with the matching ``*-details`` route and posts its decision to
the matching ``*-action`` route.
"""

from fastapi import APIRouter, Depends, Query, status

from leave_portal.core.dependencies import get_workflow
from leave_portal.schemas.leave import (
    ActionResponse,
    HRActionRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
    ManagerActionRequest,
    MDActionRequest,
    SubmitResponse,
)
from leave_portal.workflow.engine import LeaveWorkflow
from leave_portal.workflow.states import Stage

router = APIRouter(prefix="/leave", tags=["leave"])


# ── Submission ────────────────────────────────────────────────────────────────


@router.post("/submit", response_model=SubmitResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_leave_request(
    data: LeaveRequestCreate,
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    """Submit a leave request. The line manager is emailed a review link."""
    leave_request = await workflow.submit(data.model_dump())
    return SubmitResponse(
        message=f"Leave request submitted successfully for {leave_request.staff_name}",
        request_token=leave_request.request_token,
        status=leave_request.status,
    )


# ── Retrieval, one route per stage ────────────────────────────────────────────


@router.get("/details", response_model=LeaveRequestResponse)
async def get_manager_details(
    token: str = Query(""),
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    return await workflow.fetch(token, Stage.MANAGER)


@router.get("/hr-details", response_model=LeaveRequestResponse)
async def get_hr_details(
    token: str = Query(""),
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    return await workflow.fetch(token, Stage.HR)


@router.get("/md-details", response_model=LeaveRequestResponse)
async def get_md_details(
    token: str = Query(""),
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    return await workflow.fetch(token, Stage.MD)


@router.get("/final-details", response_model=LeaveRequestResponse)
async def get_final_archive_details(
    token: str = Query(""),
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    """Completed request with the full chain of decisions, for HR filing."""
    return await workflow.fetch(token, Stage.ARCHIVE)


# ── Decisions ─────────────────────────────────────────────────────────────────


@router.post("/action", response_model=ActionResponse)
async def line_manager_action(
    body: ManagerActionRequest,
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    new_status = await workflow.record_manager_decision(body.token, body.status, body.hr_email)
    return ActionResponse(
        message="Action recorded; HR has been notified of the decision.",
        status=new_status.value,
    )


@router.post("/hr-action", response_model=ActionResponse)
async def hr_manager_action(
    body: HRActionRequest,
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    new_status = await workflow.record_hr_decision(body.token, body.status, body.md_email)
    return ActionResponse(
        message="HR decision recorded; request forwarded to MD for final action.",
        status=new_status.value,
    )


@router.post("/md-action", response_model=ActionResponse)
async def md_action(
    body: MDActionRequest,
    workflow: LeaveWorkflow = Depends(get_workflow),
):
    new_status = await workflow.record_md_decision(body.token, body.status)
    return ActionResponse(
        message="Leave request finalized. HR has been notified of the completion.",
        status=new_status.value,
    )
