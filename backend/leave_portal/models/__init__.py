from leave_portal.models.user import User
from leave_portal.models.leave_request import LeaveRequest

__all__ = [
    "User",
    "LeaveRequest",
]
