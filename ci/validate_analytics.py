"""CI validation: verify exported experiment data is complete and sane.

This script is the final gate in CI. It reads the exported experiments JSON
and asserts structural and statistical invariants. If anything is wrong, it
exits non-zero and fails the build.

Usage:
    python ci/validate_analytics.py
    python ci/validate_analytics.py --data data/experiments.json
"""

import argparse
import json
import sys
from pathlib import Path

REQUIRED_TOP_KEYS = {"experiments"}
SCORE_FIELDS = {"variants", "best", "baseline", "least", "choice"}
VARIANT_FIELDS = {
    "index",
    "name",
    "value",
    "conversion_rate",
    "population",
    "z_score",
    "confidence",
    "lift",
}
CONFIDENCE_LEVELS = {0.0, 90.0, 95.0, 99.0, 99.9}


def validate(data: dict) -> list[str]:
    """Return a list of validation errors (empty = pass)."""
    errors = []

    for key in REQUIRED_TOP_KEYS:
        if key not in data:
            errors.append(f"Missing top-level key: {key}")

    if errors:
        return errors  # Can't continue without structure

    experiments = data["experiments"]
    if not experiments:
        errors.append("experiments is empty: no experiment data exported")
        return errors

    for exp in experiments:
        exp_id = exp.get("experiment_id", "UNKNOWN")

        score = exp.get("score")
        if score is None:
            errors.append(f"Experiment {exp_id} missing score")
            continue

        missing = SCORE_FIELDS - set(score.keys())
        if missing:
            errors.append(f"Experiment {exp_id} score missing fields: {missing}")
            continue

        variants = score["variants"]
        if len(variants) < 2:
            errors.append(f"Experiment {exp_id} has fewer than 2 variants")
            continue

        for v in variants:
            missing = VARIANT_FIELDS - set(v.keys())
            if missing:
                errors.append(f"Experiment {exp_id} variant {v.get('name')} missing fields: {missing}")
                continue
            rate = v["conversion_rate"]
            if rate < 0 or rate > 1:
                errors.append(f"Experiment {exp_id} {v['name']} has invalid rate: {rate}")
            if v["population"] < 0:
                errors.append(f"Experiment {exp_id} {v['name']} has negative population")
            if v["population"] == 0 and rate != 0:
                errors.append(f"Experiment {exp_id} {v['name']} converts with no participants")
            if v["confidence"] not in CONFIDENCE_LEVELS:
                errors.append(f"Experiment {exp_id} {v['name']} invalid confidence: {v['confidence']}")

        best = score["best"]
        top_rate = max(v.get("conversion_rate", 0) for v in variants)
        if best is None and top_rate > 0:
            errors.append(f"Experiment {exp_id} has conversions but no best variant")
        if best is not None and best["conversion_rate"] != top_rate:
            errors.append(
                f"Experiment {exp_id} best {best['name']} is not the highest rate "
                f"({best['conversion_rate']} < {top_rate})"
            )

        outcome = exp.get("outcome")
        choice = score["choice"]
        if outcome is not None and (choice is None or choice["index"] != outcome):
            errors.append(f"Experiment {exp_id} choice does not match outcome {outcome}")
        if outcome is None and choice is not None and choice["confidence"] < 90:
            errors.append(f"Experiment {exp_id} choice below 90% confidence")

        if not exp.get("claims"):
            errors.append(f"Experiment {exp_id} has no claims")

    return errors


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate exported experiment data")
    parser.add_argument(
        "--data",
        default="data/experiments.json",
        help="Path to exported experiments JSON",
    )
    opts = parser.parse_args()

    path = Path(opts.data)
    if not path.exists():
        print(f"FAIL: {opts.data} not found. Run 'python -m src.simulator.generate' first.")
        sys.exit(1)

    data = json.loads(path.read_text())
    errors = validate(data)

    if errors:
        print(f"FAIL: {len(errors)} validation error(s):")
        for e in errors:
            print(f"  - {e}")
        sys.exit(1)

    print("PASS: Experiment exports validated")
    for exp in data["experiments"]:
        best = exp["score"]["best"]
        summary = f"{best['name']} at {best['conversion_rate']:.1%} ({best['confidence']:g}%)" if best else "no winner"
        print(f"  Experiment {exp['experiment_id']}: {summary}")


if __name__ == "__main__":
    main()
