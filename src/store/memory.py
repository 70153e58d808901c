"""In-process counter store.

Used by the tests and by simulations that don't need a database. Each
primitive holds the lock only for its own duration, which gives the same
per-operation atomicity a shared store provides and nothing more.
"""

import threading


class MemoryStore:
    def __init__(self) -> None:
        self._sets: dict[str, set[str]] = {}
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, key: str, member: str) -> None:
        with self._lock:
            self._sets.setdefault(key, set()).add(member)

    def is_member(self, key: str, member: str) -> bool:
        with self._lock:
            return member in self._sets.get(key, ())

    def cardinality(self, key: str) -> int:
        with self._lock:
            return len(self._sets.get(key, ()))

    def increment(self, key: str) -> int:
        with self._lock:
            value = int(self._values.get(key, "0")) + 1
            self._values[key] = str(value)
            return value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set_if_absent(self, key: str, value: str) -> bool:
        with self._lock:
            if key in self._values:
                return False
            self._values[key] = value
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._sets.pop(key, None)
            self._values.pop(key, None)
