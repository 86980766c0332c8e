"""Main entry point for the TaskPing background services."""

import asyncio
import logging
import signal
import sys

from taskping.config import Config
from taskping.db.migrations import run_migrations
from taskping.db.repository import Repository
from taskping.engine.materializer import RecurrenceMaterializer
from taskping.engine.priority_service import PriorityRecomputeService

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


async def run() -> None:
    """Run both background services until SIGINT/SIGTERM."""
    await run_migrations(Config.DATABASE_PATH)

    repo = Repository(Config.DATABASE_PATH)
    await repo.connect()

    materializer = RecurrenceMaterializer(
        repo,
        interval=Config.RECURRENCE_SWEEP_INTERVAL,
        first=Config.RECURRENCE_STARTUP_DELAY,
        lookahead_days=Config.LOOKAHEAD_DAYS,
        tz=Config.TIMEZONE,
    )
    priorities = PriorityRecomputeService(
        repo,
        interval=Config.PRIORITY_RECOMPUTE_INTERVAL,
        first=Config.PRIORITY_STARTUP_DELAY,
        tz=Config.TIMEZONE,
    )

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            pass  # Windows; Ctrl+C still raises KeyboardInterrupt

    materializer.start()
    priorities.start()
    logger.info("TaskPing initialized successfully")

    try:
        await shutdown.wait()
    finally:
        logger.info("Shutting down...")
        await materializer.stop()
        await priorities.stop()
        await repo.close()
        logger.info("TaskPing shut down")


def main() -> None:
    """Start the services."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    logger.info("Starting TaskPing...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
