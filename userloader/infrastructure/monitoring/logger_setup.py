"""Root logger configuration for userloader runs.

Console output always goes to stdout. When ``LoggingSettings.file`` is set,
the same records are also appended to that file, so a long provisioning run
leaves a trail next to ``users-list.json`` and ``failures.log``.
"""

import logging
import sys
from typing import Optional

from userloader.infrastructure.config.settings import LoggingSettings

# Client libraries that log each request at INFO.
CHATTY_LOGGERS = ("httpx", "httpcore")


def _file_handler(settings: LoggingSettings, formatter: logging.Formatter) -> Optional[logging.Handler]:
    if not settings.file:
        return None
    try:
        handler = logging.FileHandler(settings.file, encoding='utf-8')
    except OSError as e:
        # Console logging still works; the run goes on without the file.
        logging.error(f"Cannot open log file {settings.file}: {e}")
        return None
    handler.setLevel(settings.level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: LoggingSettings) -> None:
    """Replaces the root logger's handlers according to ``settings``.

    Args:
        settings: Level, format and optional log file, usually from
            ``get_logging_settings()``.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(settings.level)

    formatter = logging.Formatter(settings.format)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.level)
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    file_handler = _file_handler(settings, formatter)
    if file_handler is not None:
        root_logger.addHandler(file_handler)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(settings.level, logging.WARNING))

    target = f"stdout and {settings.file}" if file_handler is not None else "stdout"
    logging.info(f"Logging at {logging.getLevelName(settings.level)} to {target}")
