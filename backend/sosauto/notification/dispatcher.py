"""
notification/dispatcher.py

Notification fan-out.

The persisted Notification row is written by the caller inside its own
transaction. Once that commit succeeded, `fan_out` schedules the two
best-effort channels (live push and email) as detached tasks: the request
never waits on them and their failures are only logged.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from sosauto.core.email import EmailSender, OutgoingEmail
from sosauto.notification.manager import NotificationTransport
from sosauto.notification.models import Notification
from sosauto.notification.schemas import NotificationFrame, NotificationRead

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Schedules push and email delivery for persisted notifications."""

    def __init__(
        self,
        transport: NotificationTransport,
        mailer: EmailSender,
        email_timeout: float = 10.0,
    ) -> None:
        self.transport = transport
        self.mailer = mailer
        self.email_timeout = email_timeout
        # Strong references so running tasks are not garbage collected
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def fan_out(self, notification: Notification, email: OutgoingEmail | None = None) -> None:
        """Starts push (always) and email (when given) for one committed notification."""
        frame = NotificationFrame(data=NotificationRead.model_validate(notification))
        payload = frame.model_dump(mode="json", by_alias=True)

        logger.info(
            f"[FANOUT] Notification {notification.id} -> user {notification.user_id} "
            f"(push{', email' if email else ''})"
        )
        self._spawn(self._push(notification, payload))
        if email is not None:
            self._spawn(self._send_email(email))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _push(self, notification: Notification, payload: dict[str, Any]) -> None:
        try:
            await self.transport.emit(notification.user_id, payload)
        except Exception as e:
            logger.warning(f"[PUSH] Failed to push notification {notification.id}: {e}")

    async def _send_email(self, email: OutgoingEmail) -> None:
        try:
            await asyncio.wait_for(self.mailer.send(email), timeout=self.email_timeout)
        except asyncio.TimeoutError:
            logger.error(f"[EMAIL] Send to {email.to} timed out after {self.email_timeout}s")
        except Exception as e:
            logger.error(f"[EMAIL] Failed to send '{email.subject}' to {email.to}: {e}")

    async def drain(self) -> None:
        """Waits for every in-flight delivery; used on shutdown and in tests."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
