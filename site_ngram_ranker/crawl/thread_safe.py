"""
Thread-safe data structures shared by crawl worker tasks.
"""

import queue
import threading
from typing import Any, Optional, Set


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """Atomically decrement counter and return new value."""
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class ThreadSafeQueue:
    """FIFO queue for many producers and one consumer."""

    def __init__(self, maxsize: int = 0):
        """
        Initialize thread-safe queue.

        Args:
            maxsize: Maximum queue size (0 for unlimited)
        """
        self._queue = queue.Queue(maxsize)

    def put(self, item: Any, timeout: Optional[float] = None) -> None:
        """
        Put item into queue.

        Raises:
            queue.Full: If queue is full and timeout expires
        """
        self._queue.put(item, timeout=timeout)

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        Get item from queue.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            Item from queue

        Raises:
            queue.Empty: If queue is empty and timeout expires
        """
        return self._queue.get(timeout=timeout)

    def empty(self) -> bool:
        return self._queue.empty()


class ThreadSafeSet:
    """Thread-safe set whose ``add`` is an atomic insert-if-absent."""

    def __init__(self):
        self._set: Set[Any] = set()
        self._lock = threading.Lock()

    def add(self, item: Any) -> bool:
        """
        Insert item unless already present, as one atomic step.

        Exactly one of several threads racing to add the same item
        gets True back.

        Args:
            item: Item to add

        Returns:
            True if item was added (wasn't already present)
        """
        with self._lock:
            if item in self._set:
                return False
            self._set.add(item)
            return True

    def __contains__(self, item: Any) -> bool:
        with self._lock:
            return item in self._set
