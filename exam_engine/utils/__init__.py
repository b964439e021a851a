"""
Utils Package
"""
from exam_engine.utils.helpers import (
    now_utc,
    ensure_utc,
    isoformat,
    seconds_until
)
from exam_engine.utils.logging_config import configure_logging

__all__ = [
    'now_utc',
    'ensure_utc',
    'isoformat',
    'seconds_until',
    'configure_logging'
]
