import logging
from typing import Optional

from medpredict.config import get_settings


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Настройка корневого логгера для CLI"""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=fmt or settings.LOG_FORMAT,
    )
    # Шумные сторонние логгеры
    logging.getLogger('torch').setLevel(logging.WARNING)
