"""Counter store contract shared by every experiment.

The engine never locks anything itself. All coordination between
concurrent callers goes through the atomic primitives below, so any
backend that implements them (in-process, DuckDB, Redis, ...) can host
experiments.
"""

from typing import Protocol

KEY_PREFIX = "ab"


def namespaced(experiment_id: str, *parts: object) -> str:
    """Build a store key scoped to one experiment, e.g. ``ab:exp:outcome``."""
    return ":".join([KEY_PREFIX, experiment_id, *(str(p) for p in parts)])


class CounterStore(Protocol):
    def add(self, key: str, member: str) -> None:
        """Add member to the set at key. Adding twice is a no-op."""

    def is_member(self, key: str, member: str) -> bool: ...

    def cardinality(self, key: str) -> int: ...

    def increment(self, key: str) -> int:
        """Atomically add one to the counter at key and return the new value."""

    def get(self, key: str) -> str | None: ...

    def set_if_absent(self, key: str, value: str) -> bool:
        """Write value only if key is unset. Returns True if this call wrote it."""

    def delete(self, key: str) -> None:
        """Remove key, whatever it holds (set, counter or value)."""
