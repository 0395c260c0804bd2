import logging
import threading
from collections import OrderedDict

logger = logging.getLogger(__name__)


class RecencyCache:
    """Fixed-size LRU of executed commands.

    The OrderedDict keeps the least recent command first and the most
    recent last, so touching and evicting are both O(1).
    """

    def __init__(self, capacity=100):
        if capacity <= 0:
            logger.warning("Recency cache capacity %r is not positive, using 1", capacity)
            capacity = 1
        self.capacity = capacity
        self.lock = threading.Lock()
        self._order = OrderedDict()

    def __len__(self):
        with self.lock:
            return len(self._order)

    def __contains__(self, command):
        with self.lock:
            return command in self._order

    def put(self, command: str):
        with self.lock:
            if command in self._order:
                self._order.move_to_end(command)
                return
            if len(self._order) >= self.capacity:
                evicted, _ = self._order.popitem(last=False)
                logger.debug("Evicted '%s' from recency cache", evicted)
            self._order[command] = None

    def snapshot(self):
        """Commands ordered most recent first."""
        with self.lock:
            return list(reversed(self._order))

    def get_suggestions(self, prefix: str, limit: int):
        """Yield up to `limit` cached commands containing `prefix`, most recent first."""
        if limit <= 0:
            return
        needle = prefix.lower()
        count = 0
        for cmd in self.snapshot():
            if needle in cmd.lower():
                yield cmd
                count += 1
                if count >= limit:
                    break
