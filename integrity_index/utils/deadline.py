"""
Cooperative time budget for long-running sync steps.
"""

from __future__ import annotations

import time
from typing import Optional


class Deadline:
    """
    Wall-clock budget checked between units of work.

    A deadline built with ``seconds=None`` never expires.

    Example:
        deadline = Deadline(50)
        for batch in batches:
            if deadline.expired():
                break
    """

    def __init__(self, seconds: Optional[float]):
        self.seconds = seconds
        self.started_at = time.monotonic()

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(None)

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def remaining(self) -> Optional[float]:
        if self.seconds is None:
            return None
        return max(0.0, self.seconds - self.elapsed())

    def expired(self) -> bool:
        return self.seconds is not None and self.elapsed() >= self.seconds
