# ABOUTME: Thin async client for the Telegram Bot API built on httpx
# ABOUTME: Raises typed errors and exposes the status chat as a send/edit/fetch capability

import logging
from typing import Any

import httpx

from .formatter import FormattedMessage

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

# Bot API descriptions that mean the referenced message no longer exists
_NOT_FOUND_MARKERS = (
    "message to edit not found",
    "message to delete not found",
    "message to pin not found",
    "message not found",
    "message_id_invalid",
)


class TelegramAPIError(Exception):
    """A Bot API call returned ok=false."""

    def __init__(self, method: str, error_code: int | None, description: str):
        self.method = method
        self.error_code = error_code
        self.description = description
        super().__init__(f"{method} failed ({error_code}): {description}")


class MessageNotFoundError(TelegramAPIError):
    """The referenced message was deleted or never existed."""


def _raise_for_reply(method: str, data: dict[str, Any]) -> None:
    if data.get("ok"):
        return
    description = str(data.get("description") or "unknown error")
    error_code = data.get("error_code")
    lowered = description.lower()
    if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        raise MessageNotFoundError(method, error_code, description)
    raise TelegramAPIError(method, error_code, description)


class TelegramClient:
    """Calls Bot API methods with the configured token."""

    def __init__(
        self,
        token: str,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = TELEGRAM_API_URL,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._owns_client = http_client is None

    async def start(self) -> None:
        """Initialize async resources."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)

    async def stop(self) -> None:
        """Clean up async resources."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise RuntimeError("TelegramClient not started")
        return self._http_client

    async def call(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        """
        Invoke a Bot API method and return its `result`.

        Raises:
            TelegramAPIError: If Telegram answers ok=false
            MessageNotFoundError: If the answer says the message is gone
            httpx.HTTPError: On transport failures
        """
        url = f"{self.base_url}/bot{self.token}/{method}"
        response = await self.http_client.post(url, json=payload or {})
        try:
            data = response.json()
        except ValueError as e:
            raise TelegramAPIError(
                method, response.status_code, f"non-JSON reply: {response.text[:200]}"
            ) from e
        _raise_for_reply(method, data)
        return data.get("result")

    async def get_me(self) -> dict[str, Any]:
        return await self.call("getMe")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: str | None = None,
        disable_notification: bool = False,
    ) -> dict[str, Any]:
        """Send a message and return the Message object."""
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if disable_notification:
            payload["disable_notification"] = True
        return await self.call("sendMessage", payload)

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: str | None = None,
    ) -> None:
        """Replace a message's text. An unchanged message counts as success."""
        payload: dict[str, Any] = {"chat_id": chat_id, "message_id": message_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        try:
            await self.call("editMessageText", payload)
        except MessageNotFoundError:
            raise
        except TelegramAPIError as e:
            if "message is not modified" in e.description.lower():
                logger.debug(f"Message {message_id} already up to date")
                return
            raise

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self.call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def pin_chat_message(self, chat_id: int, message_id: int) -> None:
        await self.call(
            "pinChatMessage",
            {"chat_id": chat_id, "message_id": message_id, "disable_notification": True},
        )

    async def get_chat(self, chat_id: int) -> dict[str, Any]:
        return await self.call("getChat", {"chat_id": chat_id})

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        await self.call("setMyCommands", {"commands": commands})


class StatusChannel:
    """
    The status chat seen as a message store.

    The live status message is pinned, which is what lets `fetch` find it
    again: the Bot API has no way to read an arbitrary message by id.
    """

    def __init__(self, client: TelegramClient, chat_id: int):
        self.client = client
        self.chat_id = chat_id

    async def send(self, payload: FormattedMessage) -> int:
        """Post a new status message, pin it, and return its id."""
        message = await self.client.send_message(
            self.chat_id,
            payload.text,
            parse_mode=payload.parse_mode,
            disable_notification=True,
        )
        message_id = message["message_id"]
        try:
            await self.client.pin_chat_message(self.chat_id, message_id)
        except (TelegramAPIError, httpx.HTTPError) as e:
            # Startup cleanup only finds pinned messages, so this one would survive a restart
            logger.error(
                f"Could not pin status message {message_id}: {e}. "
                "It will not be removed on restart; grant the bot pin rights in the status chat."
            )
        return message_id

    async def edit(self, message_id: int, payload: FormattedMessage) -> None:
        """Update a status message in place. Raises MessageNotFoundError if gone."""
        await self.client.edit_message_text(
            self.chat_id,
            message_id,
            payload.text,
            parse_mode=payload.parse_mode,
        )

    async def fetch(self, message_id: int) -> dict[str, Any]:
        """Return the message if it is the chat's pinned message."""
        chat = await self.client.get_chat(self.chat_id)
        pinned = chat.get("pinned_message")
        if not pinned or pinned.get("message_id") != message_id:
            raise MessageNotFoundError("getChat", 400, f"message {message_id} not found")
        return pinned

    async def fetch_pinned(self) -> dict[str, Any] | None:
        chat = await self.client.get_chat(self.chat_id)
        return chat.get("pinned_message")

    async def delete(self, message_id: int) -> None:
        await self.client.delete_message(self.chat_id, message_id)
