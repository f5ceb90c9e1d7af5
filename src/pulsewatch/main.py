# ABOUTME: Pulsewatch entry point - starts the FastAPI server
# ABOUTME: Validates configuration and runs uvicorn

import logging
import sys

import uvicorn

from .config import get_settings
from .webhook import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for Pulsewatch."""
    logger.info("Starting Pulsewatch - Telegram heartbeat monitor")

    # Load and validate settings
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Failed to load settings: {e}")
        sys.exit(1)

    # Check for configuration errors
    errors = settings.validate_ready()
    if errors:
        logger.error("Configuration errors:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    monitor_config = settings.get_monitor_config()
    logger.info(f"Heartbeat chat: {settings.heartbeat_chat_id} (topic: {settings.heartbeat_thread_id})")
    logger.info(f"Status chat: {settings.status_chat_id}")
    logger.info(f"Heartbeat marker: {monitor_config.marker!r}")
    logger.info(
        f"Offline after {monitor_config.offline_threshold_delta}, "
        f"checking every {monitor_config.check_every_delta}"
    )
    logger.info(f"Webhook path: {settings.webhook_path}")

    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
