"""Plain-language claims derived from a Score."""

from src.analysis.stats import Score, VariantScore


def _title(name: str) -> str:
    # "option A" -> "Option A"
    return name[:1].upper() + name[1:]


def conclusion(score: Score) -> list[str]:
    """Turn a score into a list of human-readable claims."""
    claims: list[str] = []
    converting = sorted(
        (v for v in score.variants if v.conversion_rate > 0),
        key=lambda v: v.conversion_rate,
        reverse=True,
    )

    if len(converting) > 1:
        # Converting variants best to worst, then the ones that never converted.
        ordered: list[VariantScore] = converting + [
            v for v in score.variants if v not in converting
        ]
        best, second = ordered[0], ordered[1]
        if best.conversion_rate > second.conversion_rate:
            diff = round(
                (best.conversion_rate - second.conversion_rate)
                / second.conversion_rate
                * 100
            )
            better = f" ({diff}% better than {second.name})" if diff > 0 else ""
            claims.append(
                f"The best choice is {best.name}: it converted at "
                f"{best.conversion_rate * 100:.1f}%{better}."
            )
            if best.confidence >= 90:
                claims.append(
                    f"With {best.confidence:g}% probability this result is "
                    "statistically significant."
                )
            else:
                claims.append(
                    "This result is not statistically significant, "
                    "suggest you continue this experiment."
                )
            ordered.remove(best)
        for v in ordered:
            if v.conversion_rate > 0:
                claims.append(f"{_title(v.name)} converted at {v.conversion_rate * 100:.1f}%.")
            else:
                claims.append(f"{_title(v.name)} did not convert.")
    else:
        claims.append("This experiment did not run long enough to find a clear winner.")

    if score.choice is not None:
        claims.append(f"{_title(score.choice.name)} selected as the best alternative.")
    return claims
