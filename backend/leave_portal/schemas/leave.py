from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LeaveRequestCreate(BaseModel):
    # Required fields are checked by the workflow engine so that a blank
    # value and a missing one get the same error. Lengths match the columns.
    staff_name: Optional[str] = Field(None, max_length=255)
    staff_no: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    leave_type: Optional[str] = Field(None, max_length=100)
    start_date: Optional[str] = Field(None, max_length=50)
    resumption_date: Optional[str] = Field(None, max_length=50)
    total_days: float = 0  # computed by the client, accepted as given
    relief_staff: Optional[str] = Field(None, max_length=255)
    contact_address: Optional[str] = None
    manager_email: Optional[str] = Field(None, max_length=255)


class SubmitResponse(BaseModel):
    message: str
    request_token: str
    status: str


class ManagerActionRequest(BaseModel):
    token: Optional[str] = None
    status: Optional[str] = None  # "Approved" or "Rejected"
    hr_email: Optional[str] = Field(None, max_length=255)


class HRActionRequest(BaseModel):
    token: Optional[str] = None
    status: Optional[str] = None
    md_email: Optional[str] = Field(None, max_length=255)


class MDActionRequest(BaseModel):
    token: Optional[str] = None
    status: Optional[str] = None


class ActionResponse(BaseModel):
    message: str
    status: str


class LeaveRequestResponse(BaseModel):
    id: UUID
    staff_name: str
    staff_no: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    leave_type: Optional[str] = None
    start_date: Optional[str] = None
    resumption_date: Optional[str] = None
    total_days: float
    relief_staff: Optional[str] = None
    contact_address: Optional[str] = None
    manager_email: str
    hr_email: Optional[str] = None
    md_email: Optional[str] = None
    manager_decision: Optional[str] = None
    hr_decision: Optional[str] = None
    md_decision: Optional[str] = None
    manager_approved: bool
    hr_approved: bool
    md_approved: bool
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
