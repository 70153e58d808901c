"""One arm of an experiment and its live statistics.

A Variant is an immutable description (index + value). Its counts are not
held on the object: every read goes to the counter store, so two processes
looking at the same variant always see the same numbers.
"""

from dataclasses import dataclass, field
from typing import Any

from src.store.base import CounterStore, namespaced


@dataclass(frozen=True)
class Variant:
    experiment_id: str
    index: int
    value: Any
    store: CounterStore = field(repr=False, compare=False)

    @property
    def name(self) -> str:
        # option A, option B, ...
        return f"option {chr(65 + self.index)}"

    def key(self, counter: str) -> str:
        return namespaced(self.experiment_id, "variants", self.index, counter)

    def participants(self) -> int:
        return self.store.cardinality(self.key("participants"))

    def converted(self) -> int:
        """Number of distinct participants who converted."""
        return self.store.cardinality(self.key("converted"))

    def conversion_events(self) -> int:
        """Raw conversion count; the same participant may be counted twice."""
        return int(self.store.get(self.key("conversions")) or 0)

    def conversion_rate(self) -> float:
        participants = self.participants()
        if participants == 0:
            return 0.0
        # Counts are read one after the other; clamp in case conversions
        # landed after the participant count was read.
        return min(self.converted() / participants, 1.0)

    def record_participation(self, identity: str) -> None:
        self.store.add(self.key("participants"), identity)

    def record_conversion(self, identity: str) -> None:
        # Conversions only count for identities already participating.
        # A conversion that races ahead of its participation is dropped.
        if self.store.is_member(self.key("participants"), identity):
            self.store.add(self.key("converted"), identity)
            self.store.increment(self.key("conversions"))

    def reset(self) -> None:
        for counter in ("participants", "converted", "conversions"):
            self.store.delete(self.key(counter))

    def __str__(self) -> str:
        return self.name
