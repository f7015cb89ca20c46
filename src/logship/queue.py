"""In-memory pending queue."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional

from .models import Event


class PendingQueue:
    """Insertion-ordered, unbounded FIFO of events awaiting routing."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: Deque[Event] = deque(events)

    def push(self, event: Event) -> None:
        self._events.append(event)

    def pop(self) -> Optional[Event]:
        if not self._events:
            return None
        return self._events.popleft()

    def snapshot(self) -> List[Event]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __bool__(self) -> bool:
        return bool(self._events)


__all__ = ["PendingQueue"]
