"""Loguru sinks for design-sync.

Records emitted through ``log_sync_event`` carry an ``action`` name, which
the console sink shows in place of the call site, followed by the other
bound fields. The optional file sink writes one JSON record per line.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from design_sync.config.settings import settings
from design_sync.core.sync_logger import FEATURE_NAME, log_sync_event

_PREFIX = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "


def _escape(text: str) -> str:
    # Rendered values are spliced into the format string
    return text.replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def format_console_record(record: dict[str, Any]) -> str:
    """Loguru format callable for the console sink."""
    extra = record["extra"]
    if extra.get("feature") == FEATURE_NAME and "action" in extra:
        fmt = _PREFIX + "<magenta><level>{extra[action]}</level></magenta>"
    else:
        fmt = _PREFIX + "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

    context = {k: v for k, v in extra.items() if k not in ("feature", "action")}
    if context:
        fields = " ".join(f"{k}={v!r}" for k, v in sorted(context.items()))
        fmt += " <dim>" + _escape(fields) + "</dim>"
    return fmt + "\n{exception}"


def setup_logger(
    level: str | None = None,
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default sink with the design-sync sinks.

    Args:
        level: Minimum level; defaults to ``LOG_LEVEL`` from settings
        log_file: Path for the JSON-lines sink; console only when omitted
        rotation: Size or age at which the log file rotates
        retention: How long rotated files are kept
    """
    level = level or settings.log_level
    logger.remove()
    logger.add(sys.stderr, format=format_console_record, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=True,
            diagnose=False,
        )

    log_sync_event("logging.configured", log_level=level, log_file=log_file)
