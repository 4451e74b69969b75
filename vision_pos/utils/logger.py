"""Logging configuration"""
import sys
from typing import Any, Dict, Optional

from loguru import logger


def setup_logger(config: Optional[Dict[str, Any]] = None):
    """Configure loguru logger"""
    config = config or {}
    logger.remove()

    # Console output
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=config.get("level", "DEBUG"),
        colorize=True
    )

    # File output
    if config.get("file", True):
        logger.add(
            config.get("path", "logs/vision_pos_{time}.log"),
            rotation=config.get("rotation", "10 MB"),
            retention=config.get("retention", "7 days"),
            level=config.get("file_level", "INFO")
        )

    return logger
