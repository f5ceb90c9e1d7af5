# ABOUTME: FastAPI app receiving Telegram updates and serving the health endpoint
# ABOUTME: Routes heartbeat posts and /status queries to the monitor; runs startup housekeeping

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from .config import Settings
from .formatter import format_error, render_status_report
from .health import ReadinessFlag
from .monitor.matcher import match_heartbeat
from .monitor.publisher import StatusPublisher
from .monitor.scheduler import StatusTicker
from .monitor.service import Clock, HeartbeatMonitor, utc_now
from .monitor.tracker import HeartbeatStatus, HeartbeatTracker
from .telegram import StatusChannel, TelegramClient

logger = logging.getLogger(__name__)

STATUS_COMMAND = "status"

INDEX_PAGE = """<!DOCTYPE html>
<html>
  <head><title>Pulsewatch</title></head>
  <body>
    <h1>Pulsewatch</h1>
    <p>Telegram bot monitoring heartbeat status</p>
    <p id="status">Status: Loading...</p>
    <p><small>For health checks, visit <code>/health</code></small></p>
    <script>
      async function updateStatus() {
        const el = document.getElementById('status');
        try {
          const data = await (await fetch('/health')).json();
          el.textContent = data.bot === 'online' ? 'Bot: Online' : 'Bot: Starting...';
        } catch (error) {
          el.textContent = 'Connection Error';
        }
      }
      updateStatus();
      setInterval(updateStatus, 5000);
    </script>
  </body>
</html>
"""


class TelegramUpdate(BaseModel):
    """Telegram webhook update payload."""

    update_id: int
    message: dict[str, Any] | None = None
    edited_message: dict[str, Any] | None = None
    channel_post: dict[str, Any] | None = None


class WebhookHandler:
    """Handles incoming Telegram updates and startup housekeeping."""

    def __init__(
        self,
        settings: Settings,
        client: TelegramClient,
        monitor: HeartbeatMonitor,
        status_channel: StatusChannel,
        readiness: ReadinessFlag,
    ):
        self.settings = settings
        self.client = client
        self.monitor = monitor
        self.status_channel = status_channel
        self.readiness = readiness
        self.own_user_id: int | None = None
        self.own_username: str | None = None
        self._monitor_config = settings.get_monitor_config()
        # Track processed update IDs to prevent duplicate processing from Telegram retries
        self._processed_updates: OrderedDict[int, bool] = OrderedDict()
        self._max_tracked_updates = 1000

    def _mark_processed(self, update_id: int) -> bool:
        """Mark an update as processed. Returns False if already processed."""
        if update_id in self._processed_updates:
            return False
        self._processed_updates[update_id] = True
        while len(self._processed_updates) > self._max_tracked_updates:
            self._processed_updates.popitem(last=False)
        return True

    async def startup(self) -> None:
        """
        Run startup housekeeping, then signal readiness.

        Each step logs its own failure and does not block the next one.
        """
        try:
            me = await self.client.get_me()
            self.own_user_id = me.get("id")
            self.own_username = me.get("username")
            logger.info(f"Logged in as @{self.own_username}")
        except Exception as e:
            logger.warning(f"Could not identify bot account: {e}")

        await self._clear_stale_status_message()
        await self._register_commands()

        logger.info(f"Monitoring chat {self.settings.heartbeat_chat_id} for heartbeats...")
        self.readiness.mark_ready()

    async def _clear_stale_status_message(self) -> None:
        """Delete the status message pinned by a previous run of this bot."""
        try:
            pinned = await self.status_channel.fetch_pinned()
            if not pinned:
                return
            sender = pinned.get("from") or {}
            if self.own_user_id is None or sender.get("id") != self.own_user_id:
                logger.debug("Pinned message in status chat is not ours, leaving it")
                return
            await self.status_channel.delete(pinned["message_id"])
            logger.info(f"Removed stale status message {pinned['message_id']}")
        except Exception as e:
            logger.warning(f"Error cleaning status chat: {e}")

    async def _register_commands(self) -> None:
        try:
            await self.client.set_my_commands(
                [
                    {
                        "command": STATUS_COMMAND,
                        "description": f"Check {self._monitor_config.service_name}'s current status and last heartbeat",
                    }
                ]
            )
            logger.info("Bot commands registered")
        except Exception as e:
            logger.warning(f"Error registering bot commands: {e}")

    def _is_status_command(self, text: str) -> bool:
        """Match /status and /status@this_bot."""
        if not text.startswith("/"):
            return False
        command, _, mention = text.split()[0][1:].partition("@")
        if command.lower() != STATUS_COMMAND:
            return False
        if mention and self.own_username and mention.lower() != self.own_username.lower():
            return False
        return True

    async def handle_update(self, update: TelegramUpdate) -> None:
        """Process an incoming Telegram update."""
        if not self._mark_processed(update.update_id):
            logger.debug(f"Update {update.update_id} already processed, skipping")
            return

        # Edits never count as new heartbeats
        message = update.message or update.channel_post
        if not message:
            logger.debug(f"Update {update.update_id} has no new message, ignoring")
            return

        text = (message.get("text") or "").strip()
        if text and self._is_status_command(text):
            await self._answer_status(message)
            return

        match = match_heartbeat(
            message,
            marker=self._monitor_config.marker,
            chat_id=self.settings.heartbeat_chat_id,
            thread_id=self.settings.heartbeat_thread_id,
            own_user_id=self.own_user_id,
        )
        if not match.is_heartbeat:
            logger.debug(f"Update {update.update_id} is not a heartbeat: {match.reason}")
            return

        logger.info(f"Heartbeat message received: {match.title!r}")
        await self.monitor.on_heartbeat()

    async def _answer_status(self, message: dict[str, Any]) -> None:
        """Reply to a status query in the caller's private chat."""
        user_id = (message.get("from") or {}).get("id")
        if user_id is None:
            logger.info("Status query without a sender (channel or anonymous admin), ignoring")
            return

        try:
            snapshot = await self.monitor.status_report()
            reply = render_status_report(snapshot, self._monitor_config.service_name)
        except Exception as e:
            logger.exception(f"Error building status report: {e}")
            reply = format_error("Status is temporarily unavailable")

        try:
            await self.client.send_message(user_id, reply.text, parse_mode=reply.parse_mode)
            logger.info(f"Answered status query from {user_id}")
        except Exception as e:
            logger.warning(f"Could not send status reply to {user_id}: {e}")


def log_task_failure(task: asyncio.Task[Any]) -> None:
    """Log the exception of a finished background task, if it raised one."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Background task %s failed: %s",
            task.get_name(),
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def create_app(
    settings: Settings,
    client: TelegramClient | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    readiness = ReadinessFlag()
    handler: WebhookHandler | None = None
    background: set[asyncio.Task[None]] = set()

    def spawn(coro: Any) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        background.add(task)
        task.add_done_callback(background.discard)
        task.add_done_callback(log_task_failure)
        return task

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal handler
        monitor_config = settings.get_monitor_config()
        telegram = client or TelegramClient(settings.telegram_bot_token)
        await telegram.start()

        # One status record, shared by the tracker and the publisher
        status = HeartbeatStatus()
        tracker = HeartbeatTracker(
            status,
            offline_threshold=monitor_config.offline_threshold_delta,
            heartbeat_interval=monitor_config.heartbeat_interval_delta,
        )
        status_channel = StatusChannel(telegram, settings.status_chat_id)
        publisher = StatusPublisher(status, status_channel, service_name=monitor_config.service_name)
        monitor = HeartbeatMonitor(tracker, publisher, clock=clock)
        ticker = StatusTicker(monitor_config.check_every_delta, monitor.on_tick)

        webhook_handler = WebhookHandler(settings, telegram, monitor, status_channel, readiness)
        handler = webhook_handler
        app.state.monitor = monitor
        app.state.readiness = readiness

        async def bootstrap() -> None:
            await webhook_handler.startup()
            ticker.start()

        # Serve /health as "starting" while housekeeping runs
        spawn(bootstrap())
        logger.info("Pulsewatch started")
        yield
        for task in list(background):
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        await ticker.stop()
        await telegram.stop()
        handler = None
        logger.info("Pulsewatch stopped")

    app = FastAPI(
        title="Pulsewatch",
        description="Telegram heartbeat monitor",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return INDEX_PAGE

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        status_code, body = readiness.health_payload()
        return JSONResponse(status_code=status_code, content=body)

    @app.post(settings.webhook_path)
    async def webhook(request: Request):
        """Handle incoming Telegram webhook updates."""
        if settings.webhook_secret:
            token = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
            if token != settings.webhook_secret:
                raise HTTPException(status_code=403, detail="Invalid secret token")

        if handler is None:
            raise HTTPException(status_code=503, detail="Service not ready")

        try:
            data = await request.json()
            update = TelegramUpdate(**data)
            # Process in background - return immediately to prevent Telegram retries
            spawn(handler.handle_update(update))
            return {"ok": True}
        except Exception as e:
            logger.exception(f"Error processing webhook: {e}")
            # Return 200 anyway to prevent Telegram from retrying
            return {"ok": False, "error": str(e)}

    return app
