import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> | {message} | {extra}"
FILE_FORMAT = "{time} | {level} | {module}:{function}:{line} | {message} | {extra}"


def setup_logging(level: str, log_path: Optional[str] = None) -> None:
    """Route run output to stderr, and to a rotating file when ``log_path`` is set.

    stdout stays free for ``--dry-run`` previews.
    """
    logger.remove()
    logger.configure(extra={})
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=CONSOLE_FORMAT,
        colorize=sys.stderr.isatty(),
        backtrace=False,
        diagnose=False,
    )
    if not log_path:
        return
    logger.add(
        log_path,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="100 KB",
        compression="zip",
        diagnose=False,
    )
    logger.bind(path=log_path).debug("File logging enabled")
