"""
Logging setup for the Sacco API.

``setup_logging`` attaches a console handler and, when ``LOG_FILE`` is
set, a file handler to a logger (the root logger by default).  It can
be called more than once, e.g. by every ``create_app`` in a test run:
handlers it installed earlier are recognised by name and not added
twice, while the level is re-applied each time.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE_HANDLER_NAME = "sacco-console"
FILE_HANDLER_NAME = "sacco-file"


def _has_handler(logger: logging.Logger, name: str) -> bool:
    return any(handler.get_name() == name for handler in logger.handlers)


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> logging.Logger:
    """Configure ``logger`` (root by default) and return it.

    Parameters
    ----------
    level : str
        Level name such as ``"DEBUG"``; unknown names fall back to INFO.
    logfile : Optional[str]
        File to append log records to.  Missing parent directories are
        created.  Relative paths are resolved against the working
        directory.
    logger : Optional[logging.Logger]
        Logger to configure instead of the root logger.
    """
    logger = logger or logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if not _has_handler(logger, CONSOLE_HANDLER_NAME):
        console_handler = logging.StreamHandler()
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if logfile and not _has_handler(logger, FILE_HANDLER_NAME):
        log_path = Path(logfile).expanduser().resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(FILE_HANDLER_NAME)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
