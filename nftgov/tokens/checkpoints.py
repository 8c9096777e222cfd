"""
Block-number checkpoints for historical lookups.

Used for per-delegate votes, total supply and the governor's quorum numerator.
"""

import bisect
from dataclasses import dataclass, field
from typing import Callable, List, Tuple


@dataclass
class Checkpoints:
    """Ordered (block_number, value) history, one entry per block at most."""
    _history: List[Tuple[int, int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._history)

    def latest(self) -> int:
        return self._history[-1][1] if self._history else 0

    def push(self, block_number: int, value: int) -> Tuple[int, int]:
        """
        Record *value* at *block_number*; returns (old, new).

        Writes within the same block overwrite the last entry.
        """
        if self._history and self._history[-1][0] > block_number:
            raise ValueError("Checkpoints must be pushed in block order")
        old = self.latest()
        if self._history and self._history[-1][0] == block_number:
            self._history[-1] = (block_number, value)
        else:
            self._history.append((block_number, value))
        return old, value

    def apply(self, block_number: int, op: Callable[[int, int], int], delta: int) -> Tuple[int, int]:
        return self.push(block_number, op(self.latest(), delta))

    def upper_lookup(self, block_number: int) -> int:
        """Value of the last checkpoint at or before *block_number* (0 if none)."""
        idx = bisect.bisect_right(self._history, (block_number, float("inf")))
        return self._history[idx - 1][1] if idx else 0

    def at(self, position: int) -> Tuple[int, int]:
        return self._history[position]
