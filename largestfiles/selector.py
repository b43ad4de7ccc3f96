from __future__ import annotations
import heapq
import itertools
from typing import List, Optional, Tuple
from .models import FileRecord

TOP_N = 50

class TopFiles:
    """Keeps the ``limit`` largest records seen so far in a min-heap.

    Memory stays O(limit) however many records are pushed through ``insert``.
    Among records whose size equals the current minimum, which one survives is
    arbitrary: an equal-sized newcomer is simply discarded.

    ``drain`` ends the accepting phase. Draining again returns the same list;
    inserting after a drain raises ``RuntimeError``.
    """

    def __init__(self, limit: int = TOP_N):
        self.limit = limit
        # (size, seq, record); seq keeps records out of tuple comparison
        self._heap: List[Tuple[int, int, FileRecord]] = []
        self._seq = itertools.count()
        self._drained: Optional[List[FileRecord]] = None

    def __len__(self) -> int:
        if self._drained is not None:
            return len(self._drained)
        return len(self._heap)

    @property
    def drained(self) -> bool:
        return self._drained is not None

    @property
    def minimum(self) -> Optional[int]:
        if self._drained is not None:
            return self._drained[-1].size if self._drained else None
        return self._heap[0][0] if self._heap else None

    def insert(self, record: FileRecord) -> bool:
        """Returns True if the record is now held."""
        if self._drained is not None:
            raise RuntimeError("insert() after drain()")
        if self.limit <= 0:
            return False
        item = (record.size, next(self._seq), record)
        if len(self._heap) < self.limit:
            heapq.heappush(self._heap, item)
            return True
        if record.size > self._heap[0][0]:
            heapq.heapreplace(self._heap, item)
            return True
        return False

    def drain(self) -> List[FileRecord]:
        if self._drained is None:
            items = sorted(self._heap, key=lambda x: x[0], reverse=True)
            self._drained = [rec for _, _, rec in items]
            self._heap = []
        return list(self._drained)
