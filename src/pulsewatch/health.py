# ABOUTME: Bot readiness flag served by the /health endpoint
# ABOUTME: Set once after startup housekeeping; unrelated to the monitored service's status

import logging
from typing import Any

logger = logging.getLogger(__name__)


class ReadinessFlag:
    """Whether this bot has finished starting up. Only ever goes False -> True."""

    def __init__(self) -> None:
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        if self._ready:
            logger.debug("Readiness already signaled")
            return
        self._ready = True
        logger.info("Bot is ready")

    def health_payload(self) -> tuple[int, dict[str, Any]]:
        """HTTP status code and body for the health endpoint."""
        if self._ready:
            return 200, {"status": "healthy", "bot": "online"}
        return 503, {"status": "degraded", "bot": "starting"}
