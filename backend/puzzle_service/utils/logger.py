"""
Connections Puzzle Service - Logger Configuration
Centralized logging with loguru
"""
import sys
from pathlib import Path
from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(settings) -> None:
    """
    Install console and file sinks.

    Args:
        settings: Application settings (DEBUG, LOG_LEVEL, LOG_TO_FILE, LOG_DIR)
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stdout,
        colorize=True,
        format=CONSOLE_FORMAT,
        level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
    )

    if not settings.LOG_TO_FILE:
        return

    log_path = Path(settings.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    # All logs
    logger.add(
        log_path / "app.log",
        rotation="10 MB",
        retention="30 days",
        compression="gz",
        format=FILE_FORMAT,
        level="DEBUG",
    )

    # Errors only
    logger.add(
        log_path / "error.log",
        rotation="10 MB",
        retention="30 days",
        compression="gz",
        format=FILE_FORMAT,
        level="ERROR",
    )


__all__ = ["logger", "configure_logging"]
