"""Export experiment scores and claims as JSON.

The output feeds dashboards and the CI gate in ci/validate_analytics.py.

Usage:
    from src.analysis.export import write_export
    write_export([experiment], "data/experiments.json")
"""

import json
from pathlib import Path
from typing import Iterable

from src.ab.experiment import Experiment


def export_experiment(experiment: Experiment) -> dict:
    score = experiment.score()
    outcome = experiment.outcome()
    return {
        "experiment_id": experiment.experiment_id,
        "name": experiment.name,
        "completed": not experiment.is_active(),
        "outcome": outcome.index if outcome is not None else None,
        "score": score.model_dump(mode="json"),
        "claims": experiment.conclusion(score),
    }


def write_export(experiments: Iterable[Experiment], path: str | Path) -> dict:
    data = {"experiments": [export_experiment(e) for e in experiments]}
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return data
