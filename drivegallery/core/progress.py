"""
Progress reporting for multi-step background operations.
"""

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Progress:
    """Cursor position within an operation: `done` steps out of `total`."""
    done: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return min(1.0, self.done / self.total)

    @property
    def finished(self) -> bool:
        return self.done >= self.total


ProgressCallback = Callable[[Progress], None]
