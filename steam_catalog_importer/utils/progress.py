from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..config import PROGRESS


@dataclass
class Progress:
    label: str
    total: int | None = None
    every_n: int = PROGRESS.every_n
    min_interval_s: float = PROGRESS.min_interval_s
    started_s: float = field(default_factory=time.monotonic)
    last_log_s: float = field(default_factory=time.monotonic)
    last_seen: int = 0

    def maybe_log(self, seen: int) -> bool:
        """Log a progress line when due; returns True when a line was emitted."""
        if seen <= 0 or seen == self.last_seen:
            return False

        now = time.monotonic()
        should_log = False
        if self.every_n > 0 and seen % self.every_n == 0:
            should_log = True
        # Long runs with a large every_n should never look "stuck" in logs.
        if self.min_interval_s > 0 and (now - self.last_log_s) >= self.min_interval_s:
            should_log = True
        if self.total and seen >= self.total:
            should_log = True

        if not should_log:
            return False

        elapsed = now - self.started_s
        self.last_log_s = now
        self.last_seen = seen
        if self.total:
            logging.info(f"[{self.label}] Progress {seen}/{self.total} rows ({elapsed:.1f}s)")
        else:
            logging.info(f"[{self.label}] Progress {seen} rows ({elapsed:.1f}s)")
        return True
