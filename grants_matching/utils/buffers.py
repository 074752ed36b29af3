"""Thread-safe ordered buffer shared by many producers and one consumer"""
import itertools
import threading
from collections import OrderedDict
from typing import Generic, Hashable, List, Optional, TypeVar

V = TypeVar('V')


class SharedBuffer(Generic[V]):
    """
    Insertion-ordered key/value buffer guarded by a single lock.

    With maxsize set it evicts the least recently used entry on overflow
    (the round token cache). Without it, append() and drain() make it an
    unbounded FIFO whose contents can be swapped out atomically (the
    donation queue).
    """

    def __init__(self, maxsize: Optional[int] = None):
        if maxsize is not None and maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._entries: 'OrderedDict[Hashable, V]' = OrderedDict()
        self._lock = threading.Lock()
        self._sequence = itertools.count()

    def get(self, key: Hashable) -> Optional[V]:
        """Return the value for key and mark it most recently used"""
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self.maxsize is not None:
                while len(self._entries) > self.maxsize:
                    self._entries.popitem(last=False)

    def append(self, value: V) -> None:
        """Add a value under a fresh sequence key"""
        with self._lock:
            self._entries[next(self._sequence)] = value
            if self.maxsize is not None:
                while len(self._entries) > self.maxsize:
                    self._entries.popitem(last=False)

    def drain(self) -> List[V]:
        """Atomically take every value out, oldest first"""
        with self._lock:
            entries, self._entries = self._entries, OrderedDict()
        return list(entries.values())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
