import os

from loguru import logger


EVENTS_LEVEL = "EVENTS"
EVENTS_FILENAME = "roundtrip_events.log"

_events_handler_id = None


def setup_events_logger(full_path: str, events_retention_size: str = "2 GB") -> str:
    """
    Adds a loguru sink that records run events as JSON lines.

    Every event is one serialized loguru record. The event name is the record
    message and its fields are in the record's ``extra``.

    Args:
        full_path (str): Directory receiving the events log.
        events_retention_size (str): Rotation size passed to loguru.

    Returns:
        str: Path of the events log file.
    """
    global _events_handler_id

    full_path = os.path.expanduser(full_path)
    os.makedirs(full_path, exist_ok=True)

    try:
        logger.level(EVENTS_LEVEL)
    except ValueError:
        logger.level(EVENTS_LEVEL, no=38, icon="📝")

    close_events_logger()
    events_file = os.path.join(full_path, EVENTS_FILENAME)
    _events_handler_id = logger.add(
        events_file,
        rotation=events_retention_size,
        serialize=True,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=EVENTS_LEVEL,
        format="{time:YYYY-MM-DD at HH:mm:ss} | {level} | {message}",
    )
    return events_file


def close_events_logger():
    """Flushes and removes the events sink, if one was added."""
    global _events_handler_id

    if _events_handler_id is None:
        return
    logger.complete()
    logger.remove(_events_handler_id)
    _events_handler_id = None


def log_event(event: str, payload: dict):
    """Records ``payload`` under ``event`` when the events logger is set up."""
    if _events_handler_id is None:
        return
    logger.log(EVENTS_LEVEL, event, **payload)
