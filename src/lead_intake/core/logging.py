"""
Logging setup for the lead intake service.
"""

import sys

from loguru import logger


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str | None = None,
    enable_json: bool = False,
):
    """
    Set up standardized logging.

    Args:
        service_name: Name shown in every log line
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Custom log format string
        enable_json: Emit loguru's serialized JSON records instead of text
    """
    logger.remove()

    if log_format is None:
        log_format = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
            f"{service_name}:{{function}}:{{line}} - {{message}}"
        )

    logger.add(
        sys.stdout,
        format=log_format,
        level=log_level.upper(),
        colorize=not enable_json,
        serialize=enable_json,
        backtrace=True,
        diagnose=False,
    )

    logger.info(f"✅ Logging configured for {service_name} at level: {log_level}")


def mask_signature(signature: str | None) -> str:
    """Truncate a signature header for logs."""
    if not signature:
        return "missing"
    return f"{signature[:20]}..."
