"""Bounded move history for undo."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from klondike.common import Card, Pile

UNDO_CAPACITY = 10


@dataclass(frozen=True)
class MoveRecord:
    """One committed transfer plus the counters as they were before it."""

    cards: Tuple[Card, ...]
    source: Pile
    target: Pile
    caused_reveal: bool
    score_before: int
    moves_before: int


class UndoHistory:
    """
    LIFO stack of :class:`MoveRecord`. Pushing past ``capacity`` silently
    drops the oldest record, so only the most recent moves can be undone.
    """

    def __init__(self, capacity: int = UNDO_CAPACITY):
        if capacity < 1:
            raise ValueError("Undo capacity must be at least 1")
        self._stack: Deque[MoveRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._stack.maxlen or 0

    def push(self, record: MoveRecord):
        self._stack.append(record)

    def pop(self) -> Optional[MoveRecord]:
        if not self._stack:
            return None
        return self._stack.pop()

    def can_undo(self) -> bool:
        return len(self._stack) > 0

    def clear(self):
        self._stack.clear()

    def records(self) -> List[MoveRecord]:
        return list(self._stack)

    def __len__(self):
        return len(self._stack)
