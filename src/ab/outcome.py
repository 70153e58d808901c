"""Deciding which variant an experiment settles on when it completes.

A custom rule may be registered per experiment. It receives the variant
list and returns the winning Variant. If the rule blows up or returns
something that isn't one of the experiment's variants, the failure is
logged and the default rule (best conversion rate so far) decides.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from src.ab.variant import Variant
from src.analysis.stats import Score

logger = logging.getLogger(__name__)

OutcomeRule = Callable[[Sequence[Variant]], Variant | None]


@dataclass(frozen=True)
class RuleResult:
    variant: Variant | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.variant is not None


def apply_rule(rule: OutcomeRule, variants: Sequence[Variant]) -> RuleResult:
    """Run a custom outcome rule and tag the result as usable or failed."""
    try:
        chosen = rule(variants)
    except Exception as exc:
        return RuleResult(error=f"{type(exc).__name__}: {exc}")
    if chosen is None:
        return RuleResult(error="rule returned no variant")
    if chosen not in variants:
        return RuleResult(error=f"rule returned {chosen!r}, not a variant of this experiment")
    return RuleResult(variant=chosen)


def resolve_outcome(
    experiment_id: str,
    variants: Sequence[Variant],
    rule: OutcomeRule | None,
    score: Callable[[], Score],
) -> int | None:
    """Pick the outcome index, or None if there's no candidate yet.

    ``score`` is only called when the default rule is needed.
    """
    if rule is not None:
        result = apply_rule(rule, variants)
        if result.ok:
            return result.variant.index
        logger.warning(
            "Outcome rule for %s failed (%s), falling back to best conversion rate",
            experiment_id, result.error,
        )

    best = score().best
    if best is None:
        return None
    return best.index
