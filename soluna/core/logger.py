import sys
from pathlib import Path

from loguru import logger

from soluna.config.schema import LoggingConfig


def configure_logger(config: LoggingConfig) -> None:
    """Configure loguru logger based on settings."""
    logger.remove()  # Remove default handler

    # Console (stderr)
    logger.add(sys.stderr, level=config.level)

    # File
    if config.file_enabled:
        path = Path(config.file_path).expanduser()
        logger.add(
            path,
            rotation=config.rotation,
            retention=config.retention,
            level=config.level,
            enqueue=True  # Async safe
        )
