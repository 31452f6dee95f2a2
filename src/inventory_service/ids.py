"""
Identifier allocation for inventory records.
"""
import threading


class IdAllocator:
    """Hands out strictly increasing record ids, starting at 1.

    Ids are never reused within a process. Nothing is persisted, so a
    restarted service starts counting from 1 again.
    """

    def __init__(self, start: int = 1):
        if start < 1:
            raise ValueError(f"start must be >= 1, got {start}")
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return a fresh id and advance the counter."""
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """Return the id the next call to next() will hand out."""
        with self._lock:
            return self._next
