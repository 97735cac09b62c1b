"""Background notification dispatcher.

The workflow engine hands stage notices to ``notify`` and moves on. A single
asyncio worker drains a bounded queue, composes each email and sends it.
Delivery failures are logged and dropped; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from leave_portal.core.errors import LeavePortalError
from leave_portal.notifications.messages import EmailMessage, StageNotice, compose

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, notice: StageNotice) -> None:
        ...


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> None:
        ...


class NotificationDispatcher:
    """Queue-backed ``Notifier`` delivering stage emails in the background."""

    def __init__(
        self,
        sender: EmailSender,
        base_url: Optional[str],
        maxsize: int = 100,
        shutdown_grace: float = 5.0,
    ):
        self.sender = sender
        self.base_url = base_url
        self.shutdown_grace = shutdown_grace
        self._queue: asyncio.Queue[StageNotice] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def notify(self, notice: StageNotice) -> None:
        try:
            self._queue.put_nowait(notice)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full, dropping %s email to %s",
                notice.stage.value,
                notice.recipient,
            )

    def start(self) -> None:
        """Start the worker task. Safe to call more than once."""
        if self.running:
            logger.warning("Notification dispatcher already running, skipping start")
            return
        self._task = asyncio.create_task(self._worker(), name="notification-dispatcher")
        logger.info("Notification dispatcher started")

    async def stop(self) -> None:
        """Give queued notices ``shutdown_grace`` seconds to go out, then cancel."""
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self.shutdown_grace)
        except asyncio.TimeoutError:
            logger.warning(
                "Notification dispatcher stopping with %d undelivered notice(s)",
                self._queue.qsize(),
            )
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification dispatcher stopped")

    async def _worker(self) -> None:
        while True:
            notice = await self._queue.get()
            try:
                await self.deliver(notice)
            finally:
                self._queue.task_done()

    async def deliver(self, notice: StageNotice) -> bool:
        """Compose and send one notice. Returns False if it could not be delivered."""
        try:
            message = compose(notice, self.base_url)
            await self.sender.send(message)
        except LeavePortalError as e:
            logger.error(
                "Failed to send %s email to %s for %s: %s",
                notice.stage.value,
                notice.recipient,
                notice.staff_name,
                e.message,
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected error sending %s email to %s", notice.stage.value, notice.recipient
            )
            return False
        logger.info(
            "%s notification dispatched to %s for %s",
            notice.stage.value,
            notice.recipient,
            notice.staff_name,
        )
        return True
