"""Error logging for background jobs."""

import logging
import traceback

logger = logging.getLogger(__name__)


def log_tick_error(job_name: str, error: BaseException) -> None:
    """Log a failed tick with its traceback; the job keeps running."""
    logger.error(f"{job_name}: tick failed: {error}", exc_info=error)

    tb_list = traceback.format_exception(type(error), error, error.__traceback__)
    logger.debug(f"{job_name}: traceback:\n{''.join(tb_list)}")


def log_item_error(job_name: str, item_id: object, error: BaseException) -> None:
    """Log a failure on one item of a batch; the batch carries on."""
    logger.error(f"{job_name}: error processing {item_id}: {error}", exc_info=error)
