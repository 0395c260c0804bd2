import logging
import threading

logger = logging.getLogger(__name__)


class HistorySaveError(OSError):
    """Raised when the history file could not be written."""


class HistoryBuffer:
    """Ring buffer of executed commands with optional flat-file persistence.

    Entries are kept in a list that grows up to `capacity`; after that the
    slot at `_start` (the oldest command) is overwritten and the cursor
    moves forward.
    """

    def __init__(self, capacity=1000, path=None, cache=None):
        if capacity <= 0:
            logger.warning("History capacity %r is not positive, using 1", capacity)
            capacity = 1
        self.capacity = capacity
        self.path = path
        self.cache = cache
        self.lock = threading.Lock()
        self._entries = []
        self._start = 0

    def __len__(self):
        with self.lock:
            return len(self._entries)

    def _ordered(self):
        # caller holds the lock
        return self._entries[self._start:] + self._entries[: self._start]

    def add(self, command: str) -> bool:
        """Record an executed command. Returns False when it was skipped."""
        command = command.strip()
        if not command:
            return False
        with self.lock:
            size = len(self._entries)
            if size:
                last = self._entries[(self._start + size - 1) % size]
                if last == command:
                    return False
            if size < self.capacity:
                self._entries.append(command)
            else:
                self._entries[self._start] = command
                self._start = (self._start + 1) % self.capacity
        if self.cache is not None:
            self.cache.put(command)
        return True

    def snapshot(self):
        """Oldest-to-newest copy of the history."""
        with self.lock:
            return self._ordered()

    def clear(self):
        with self.lock:
            self._entries = []
            self._start = 0

    def load_from_disk(self, path=None):
        path = path or self.path
        if not path:
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = f.read()
        except FileNotFoundError:
            logger.info("No history file found at %s", path)
            return
        except OSError as e:
            logger.warning("Could not read history file %s: %s", path, e)
            return

        history = [line.strip() for line in data.splitlines()]
        history = [line for line in history if line]
        if len(history) > self.capacity:
            history = history[-self.capacity:]

        with self.lock:
            self._entries = history
            self._start = 0
        logger.debug("Loaded %d history entries from %s", len(history), path)

    def save_to_disk(self, path=None):
        path = path or self.path
        if not path:
            return
        content = "\n".join(self.snapshot())
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            logger.error("Failed to save history to %s: %s", path, e)
            raise HistorySaveError(f"could not save history to {path}: {e}") from e
        logger.debug("Saved history to %s", path)
