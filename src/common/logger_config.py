import json
import logging
import threading
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from .config import Settings


LOGGER_NAME = "singleton_registry"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False
_configure_lock = threading.Lock()


def _level(settings: Settings) -> int:
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    return level


def setup_logger(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure logging once per process and return the project logger.

    Later calls return the logger unchanged. If the root logger already has
    handlers (an embedding application configured logging), only the level of
    the project logger is set and no handlers are added.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    with _configure_lock:
        if _configured:
            return logger
        settings = settings or Settings.from_env()
        level = _level(settings)
        _configured = True

        if logging.getLogger().handlers:
            logger.setLevel(level)
            return logger

        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers = [console_handler]

        # File handler only when a log directory is configured
        if settings.log_dir is not None:
            settings.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                str(settings.log_dir / "singleton_registry.log"),
                when="midnight",
                interval=1,
                backupCount=7,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        logging.basicConfig(level=level, handlers=handlers)

    logger.info(
        json.dumps({
            "EventCode": 0,
            "Message": "Logger initialized",
            "FileLogging": settings.log_dir is not None,
        })
    )
    return logger
