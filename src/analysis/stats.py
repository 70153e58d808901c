"""Significance scoring for A/B experiments.

Every variant is compared against the runner-up (second-highest conversion
rate) with a two-proportion z-test, and |z| is bucketed into one of four
confidence levels. The score is recomputed from the live counters on each
call; nothing is memoised.
"""

import math
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict
from scipy import stats

from src.ab.variant import Variant

CONFIDENCE_LEVELS = (90.0, 95.0, 99.0, 99.9)

# (z threshold, confidence %) pairs, highest threshold first.
# One-tailed normal quantiles rounded to two places: 1.28, 1.64, 2.33, 3.09.
Z_TO_CONFIDENCE: tuple[tuple[float, float], ...] = tuple(
    sorted(
        ((round(float(stats.norm.ppf(pct / 100)), 2), pct) for pct in CONFIDENCE_LEVELS),
        reverse=True,
    )
)


class VariantScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    value: Any
    conversion_rate: float      # 0.0 to 1.0, rounded to 3 places
    population: int             # participants
    z_score: float              # compared to the baseline
    confidence: float           # 0, 90, 95, 99 or 99.9
    lift: float | None = None   # % over the least converting (non-zero) variant


class Score(BaseModel):
    model_config = ConfigDict(frozen=True)

    variants: list[VariantScore]
    best: VariantScore | None       # highest non-zero conversion rate
    baseline: VariantScore          # runner-up, used for the z-test
    least: VariantScore | None      # lowest non-zero conversion rate
    choice: VariantScore | None     # outcome, or best with >= 90% confidence


def confidence(z: float) -> float:
    """Map a z-score to the highest confidence level it clears, or 0."""
    z = abs(z)
    for threshold, pct in Z_TO_CONFIDENCE:
        if z >= threshold:
            return pct
    return 0.0


def z_score(p: float, n: int, p_base: float, n_base: int) -> float:
    """Unpooled two-proportion z-score of (p, n) against (p_base, n_base).

    An empty population on either side yields 0.0. Zero variance (both
    rates at 0 or 1) yields 0.0 for equal rates and signed infinity when
    the rates differ, which is as separated as two proportions get.
    """
    if n == 0 or n_base == 0:
        return 0.0
    # Rates are clamped to [0, 1], so the sum can't actually go negative;
    # abs() keeps the sqrt defined if that ever stops being true.
    variance = abs(p * (1 - p) / n + p_base * (1 - p_base) / n_base)
    if variance == 0:
        if p == p_base:
            return 0.0
        return math.copysign(math.inf, p - p_base)
    return (p - p_base) / math.sqrt(variance)


def compute_score(variants: Sequence[Variant], outcome: Variant | None = None) -> Score:
    """Score all variants from their current counts."""
    if len(variants) < 2:
        raise ValueError("Scoring needs at least 2 variants")

    rows = [
        (v, round(v.conversion_rate(), 3), v.participants()) for v in variants
    ]
    ranked = sorted(rows, key=lambda row: row[1])
    _, base_rate, base_pop = ranked[-2]
    least_rate = next((rate for _, rate, _ in ranked if rate > 0), None)

    scored = []
    for variant, rate, pop in rows:
        z = z_score(rate, pop, base_rate, base_pop)
        lift = None
        if least_rate is not None and rate > least_rate:
            lift = (rate - least_rate) / least_rate * 100
        scored.append(
            VariantScore(
                index=variant.index,
                name=variant.name,
                value=variant.value,
                conversion_rate=rate,
                population=pop,
                z_score=z,
                confidence=confidence(z),
                lift=lift,
            )
        )

    by_rate = sorted(scored, key=lambda s: s.conversion_rate)
    baseline = by_rate[-2]
    best = by_rate[-1] if by_rate[-1].conversion_rate > 0 else None
    least = next((s for s in by_rate if s.conversion_rate > 0), None)

    if outcome is not None:
        choice = scored[outcome.index]
    elif best is not None and best.confidence >= 90:
        choice = best
    else:
        choice = None

    return Score(variants=scored, best=best, baseline=baseline, least=least, choice=choice)
