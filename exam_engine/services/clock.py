"""
Clock
Single trusted time source for the attempt engine
"""
from exam_engine.utils.helpers import now_utc


class Clock:
    """Supplies the current instant"""

    def now(self):
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock, timezone-aware UTC"""

    def now(self):
        return now_utc()
