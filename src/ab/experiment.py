"""Experiment definitions and the participation/conversion lifecycle.

Each experiment has a stable ID (used to namespace its store keys and
session overrides), a name (hashed together with the identity to pick a
variant), and an ordered list of variant values. Once completed, the
experiment serves its outcome to everyone and stops recording events.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, MutableMapping, Sequence

from src.ab.assignment import assign_index
from src.ab.outcome import OutcomeRule, resolve_outcome
from src.ab.variant import Variant
from src.analysis.conclusion import conclusion
from src.analysis.stats import Score, compute_score
from src.store.base import CounterStore, namespaced

logger = logging.getLogger(__name__)

# Per-caller sticky overrides: experiment_id -> forced variant index.
Session = MutableMapping[str, int]
CompletionCheck = Callable[["Experiment"], bool]


class ConfigurationError(ValueError):
    """The experiment is set up in a way it can't run with."""


@dataclass
class Experiment:
    experiment_id: str
    name: str
    store: CounterStore = field(repr=False)
    values: Sequence[Any] = (False, True)
    variants: tuple[Variant, ...] = field(init=False)
    _outcome_rule: OutcomeRule | None = field(default=None, init=False, repr=False)
    _completion_check: CompletionCheck | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if len(self.values) < 2:
            raise ConfigurationError(
                f"Experiment {self.name} needs at least 2 variants, got {len(self.values)}"
            )
        # Values may be unhashable (dicts, lists), so compare pairwise.
        if any(value in self.values[:i] for i, value in enumerate(self.values)):
            raise ConfigurationError(f"Variant values for {self.name} must be unique")
        self.variants = tuple(
            Variant(self.experiment_id, i, value, self.store)
            for i, value in enumerate(self.values)
        )

    def key(self, name: str) -> str:
        return namespaced(self.experiment_id, name)

    def variant_for(self, value: Any) -> Variant | None:
        """Variant carrying value, if any."""
        return next((v for v in self.variants if v.value == value), None)

    # -- Lifecycle --

    def save(self) -> "Experiment":
        """Record when the experiment was first created. Safe to call repeatedly."""
        self.store.set_if_absent(self.key("created_at"), datetime.now(timezone.utc).isoformat())
        return self

    def created_at(self) -> datetime | None:
        raw = self.store.get(self.key("created_at"))
        return datetime.fromisoformat(raw) if raw else None

    def is_active(self) -> bool:
        return self.store.get(self.key("outcome")) is None

    def reset(self) -> None:
        """Clear outcome and all counts. The experiment keeps its creation time."""
        self.store.delete(self.key("outcome"))
        for variant in self.variants:
            variant.reset()

    def destroy(self) -> None:
        """Remove every trace of the experiment from the store."""
        self.reset()
        self.store.delete(self.key("created_at"))

    # -- Events --

    def _assign(self, identity: str, session: Session | None) -> Variant:
        override = session.get(self.experiment_id) if session is not None else None
        index = assign_index(self.name, identity, len(self.variants), override)
        return self.variants[index]

    def choose(self, identity: str, session: Session | None = None) -> Any:
        """Return the value identity should see, recording participation.

        The same identity always gets the same value for this experiment,
        unless the session forces a variant. After completion every caller
        gets the outcome and nothing is recorded.
        """
        if self.is_active():
            variant = self._assign(identity, session)
            variant.record_participation(identity)
            self.check_completion()
            return variant.value
        outcome = self.outcome()
        if outcome is not None:
            return outcome.value
        return self.variants[0].value

    def convert(self, identity: str, session: Session | None = None) -> None:
        """Record a conversion for identity on the variant it was assigned."""
        if not self.is_active():
            return
        variant = self._assign(identity, session)
        variant.record_conversion(identity)
        self.check_completion()

    # -- Testing --

    def chooses(self, value: Any, session: Session) -> None:
        """Force session onto the variant carrying value. ``None`` clears it."""
        if value is None:
            session.pop(self.experiment_id, None)
            return
        variant = self.variant_for(value)
        if variant is None:
            raise ConfigurationError(f"No variant {value!r} for {self.name}")
        session[self.experiment_id] = variant.index

    # -- Reporting --

    def score(self) -> Score:
        return compute_score(self.variants, self.outcome())

    def conclusion(self, score: Score | None = None) -> list[str]:
        return conclusion(score if score is not None else self.score())

    # -- Completion --

    def outcome_is(self, rule: OutcomeRule) -> None:
        """Register the rule that picks the outcome on completion. Once only."""
        if not callable(rule):
            raise ConfigurationError("Outcome rule must be callable")
        if self._outcome_rule is not None:
            raise ConfigurationError(f"outcome_is already called on {self.name}")
        self._outcome_rule = rule

    def complete_if(self, check: CompletionCheck) -> None:
        """Complete the experiment as soon as check(experiment) is true.

        The check runs after every participation and conversion.
        """
        if not callable(check):
            raise ConfigurationError("Completion check must be callable")
        self._completion_check = check

    def check_completion(self) -> None:
        if self._completion_check is not None and self._completion_check(self):
            self.complete()

    def outcome(self) -> Variant | None:
        """Variant chosen when this experiment completed, if it has."""
        raw = self.store.get(self.key("outcome"))
        if raw is None:
            return None
        index = int(raw)
        if not 0 <= index < len(self.variants):
            logger.warning("Stored outcome %s out of range for %s", raw, self.experiment_id)
            return None
        return self.variants[index]

    def complete(self) -> Variant | None:
        """Fix the outcome. The first completion to write wins.

        Returns the outcome variant, or None if no candidate exists yet
        (nobody converted and no usable rule), in which case the
        experiment keeps running.
        """
        index = resolve_outcome(self.experiment_id, self.variants, self._outcome_rule, self.score)
        if index is None:
            logger.info("No outcome candidate for %s yet, still running", self.experiment_id)
            return None
        if self.store.set_if_absent(self.key("outcome"), str(index)):
            logger.info("Experiment %s completed with %s", self.experiment_id, self.variants[index])
        else:
            logger.info("Experiment %s already completed, keeping stored outcome", self.experiment_id)
        return self.outcome()
