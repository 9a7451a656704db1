"""
In-process store of live puzzle sessions and survival runs.
"""

import threading
from collections import OrderedDict

from trainer.constants import MAX_LIVE_SESSIONS


class Registry:
    """
    Thread-safe mapping of id -> live object with a size cap.

    Once the cap is reached the least recently used entry is dropped.
    """

    def __init__(self, max_size: int = MAX_LIVE_SESSIONS):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._items: OrderedDict = OrderedDict()
        self.lock = threading.Lock()

    def add(self, key: str, item):
        with self.lock:
            self._items[key] = item
            self._items.move_to_end(key)
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def get(self, key: str):
        with self.lock:
            item = self._items.get(key)
            if item is not None:
                self._items.move_to_end(key)
            return item

    def discard(self, key: str):
        with self.lock:
            self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self.lock:
            return key in self._items

    def __len__(self) -> int:
        with self.lock:
            return len(self._items)
