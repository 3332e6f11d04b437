"""
Frontier Queue
==============

FIFO of room ids used by every breadth-first walk in the engine
(placement, push simulation, grouping).

Two records are kept apart because callers ask both questions:
- "is this id still pending?"      -> was_added()
- "was this id ever popped?"       -> was_processed()
"""

from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set


class IdQueue:
    """
    Deduplicating FIFO of integer ids with a persistent processed record.

    Adding an id that is currently queued is a no-op. An id that was
    already processed may be queued again; the builder relies on this to
    revisit rooms whose neighbours were removed.
    """

    def __init__(self, first_ids: Optional[Iterable[int]] = None):
        self._queue: Deque[int] = deque()
        self._queued: Set[int] = set()
        # dict keeps processing order
        self._processed: Dict[int, None] = {}

        if first_ids is not None:
            for room_id in first_ids:
                self.add(room_id)

    @classmethod
    def single(cls, room_id: int) -> 'IdQueue':
        return cls([room_id])

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __contains__(self, room_id: int) -> bool:
        return room_id in self._queued

    @property
    def processed(self) -> List[int]:
        """Ids in the order they were popped."""
        return list(self._processed)

    def add(self, room_id: int) -> bool:
        """Queue an id. Returns False if it was already pending."""
        if room_id in self._queued:
            return False

        self._queue.append(room_id)
        self._queued.add(room_id)
        return True

    def remove(self, room_id: int):
        """Drop a pending id (no effect on the processed record)."""
        if room_id not in self._queued:
            return

        self._queued.discard(room_id)
        self._queue = deque(i for i in self._queue if i != room_id)

    def was_added(self, room_id: int) -> bool:
        return room_id in self._queued

    def was_processed(self, room_id: int) -> bool:
        return room_id in self._processed

    def pop(self) -> int:
        """
        Pop the oldest pending id and record it as processed.

        Raises:
            IndexError: if the queue is empty
        """
        if not self._queue:
            raise IndexError("pop from an empty IdQueue")

        room_id = self._queue.popleft()
        self._queued.discard(room_id)
        self._processed[room_id] = None
        return room_id
