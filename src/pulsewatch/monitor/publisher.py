# ABOUTME: Keeps exactly one live status message in the status chat
# ABOUTME: Edits the stored message in place, recreating it if it was deleted

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import httpx

from pulsewatch.formatter import FormattedMessage, StatusCard, render_status_card
from pulsewatch.monitor.tracker import HeartbeatStatus
from pulsewatch.telegram import MessageNotFoundError, TelegramAPIError

logger = logging.getLogger(__name__)


class MessagingCapability(Protocol):
    """Where the status message lives."""

    async def send(self, payload: FormattedMessage) -> int: ...

    async def edit(self, message_id: int, payload: FormattedMessage) -> None: ...

    async def fetch(self, message_id: int) -> dict[str, Any]: ...


@dataclass
class PublishResult:
    """
    Outcome of a publish attempt.

    Attributes:
        success: True if the status message now shows the requested state
        message_id: Id of the live status message after the attempt
        created: True if a new message was posted rather than edited
        error: Description of the failure, if any
    """

    success: bool
    message_id: int | None = None
    created: bool = False
    error: str | None = None


class StatusPublisher:
    """
    Idempotent create-or-update of the single status message.

    Reads and writes `status.published_message_id`. A lock serializes
    publishes so overlapping triggers can't both decide to create a new
    message.
    """

    def __init__(
        self,
        status: HeartbeatStatus,
        channel: MessagingCapability,
        service_name: str = "EverLink",
    ):
        self.status = status
        self.channel = channel
        self.service_name = service_name
        self._lock = asyncio.Lock()

    async def publish(self, is_online: bool, now: datetime) -> PublishResult:
        """
        Show `is_online` in the status chat.

        Failures are returned, not raised; the stored message id is only
        changed after a successful send.
        """
        state = "ONLINE" if is_online else "OFFLINE"

        async with self._lock:
            try:
                payload = render_status_card(
                    StatusCard(service_name=self.service_name, online=is_online, timestamp=now)
                )
                message_id = self.status.published_message_id
                if message_id is not None:
                    try:
                        await self.channel.edit(message_id, payload)
                        logger.info(f"Updated status message {message_id}: {state}")
                        return PublishResult(success=True, message_id=message_id)
                    except MessageNotFoundError:
                        logger.debug(f"Status message {message_id} is gone, posting a new one")

                new_id = await self.channel.send(payload)
                self.status.published_message_id = new_id
                logger.info(f"Posted status message {new_id}: {state}")
                return PublishResult(success=True, message_id=new_id, created=True)

            except (TelegramAPIError, httpx.HTTPError) as e:
                error = str(e)
            except Exception as e:
                # Malformed replies, invalid request URLs, renderer bugs
                error = f"{type(e).__name__}: {e}"

            return PublishResult(
                success=False,
                message_id=self.status.published_message_id,
                error=error,
            )
