from leave_portal.notifications.dispatcher import NotificationDispatcher, Notifier
from leave_portal.notifications.email import EmailService
from leave_portal.notifications.messages import EmailMessage, StageNotice, compose

__all__ = [
    "EmailMessage",
    "EmailService",
    "NotificationDispatcher",
    "Notifier",
    "StageNotice",
    "compose",
]
