"""Tests for CI experiment export validation."""

from ci.validate_analytics import validate
from src.ab.experiment import Experiment
from src.analysis.export import export_experiment, write_export
from src.store.memory import MemoryStore


def _variant(index, name, rate, population, confidence=0.0, lift=None):
    return {
        "index": index,
        "name": name,
        "value": name,
        "conversion_rate": rate,
        "population": population,
        "z_score": 0.0,
        "confidence": confidence,
        "lift": lift,
    }


def _valid_data():
    """Return minimal valid export data."""
    a = _variant(0, "option A", 0.2, 100, confidence=95.0, lift=100.0)
    b = _variant(1, "option B", 0.1, 100)
    return {
        "experiments": [
            {
                "experiment_id": "exp_1",
                "name": "Exp 1",
                "completed": False,
                "outcome": None,
                "score": {
                    "variants": [a, b],
                    "best": a,
                    "baseline": b,
                    "least": b,
                    "choice": a,
                },
                "claims": ["The best choice is option A: it converted at 20.0% (100% better than option B)."],
            }
        ],
    }


def _experiment_with_data():
    exp = Experiment(experiment_id="exp_color", name="Color", store=MemoryStore(), values=("red", "blue"))
    session = {}
    for index, users, conversions in ((0, 40, 4), (1, 40, 12)):
        session[exp.experiment_id] = index
        for i in range(users):
            exp.choose(f"{index}_{i}", session)
        for i in range(conversions):
            exp.convert(f"{index}_{i}", session)
    return exp


class TestValidate:
    def test_valid_data_passes(self):
        assert validate(_valid_data()) == []

    def test_missing_top_level_key(self):
        errors = validate({})
        assert any("Missing top-level key: experiments" in e for e in errors)

    def test_empty_experiments(self):
        errors = validate({"experiments": []})
        assert any("experiments is empty" in e for e in errors)

    def test_missing_score(self):
        data = _valid_data()
        del data["experiments"][0]["score"]
        assert any("missing score" in e for e in validate(data))

    def test_single_variant(self):
        data = _valid_data()
        data["experiments"][0]["score"]["variants"] = data["experiments"][0]["score"]["variants"][:1]
        assert any("fewer than 2 variants" in e for e in validate(data))

    def test_invalid_rate(self):
        data = _valid_data()
        data["experiments"][0]["score"]["variants"][1]["conversion_rate"] = 1.5
        assert any("invalid rate" in e for e in validate(data))

    def test_invalid_confidence(self):
        data = _valid_data()
        data["experiments"][0]["score"]["variants"][0]["confidence"] = 80.0
        assert any("invalid confidence" in e for e in validate(data))

    def test_best_not_highest(self):
        data = _valid_data()
        score = data["experiments"][0]["score"]
        score["best"] = score["variants"][1]
        assert any("not the highest rate" in e for e in validate(data))

    def test_choice_must_match_outcome(self):
        data = _valid_data()
        data["experiments"][0]["outcome"] = 1
        assert any("does not match outcome" in e for e in validate(data))

    def test_unqualified_choice(self):
        data = _valid_data()
        data["experiments"][0]["score"]["choice"] = data["experiments"][0]["score"]["variants"][1]
        assert any("below 90% confidence" in e for e in validate(data))

    def test_missing_claims(self):
        data = _valid_data()
        data["experiments"][0]["claims"] = []
        assert any("no claims" in e for e in validate(data))


class TestExport:
    def test_exported_experiment_validates(self):
        exp = _experiment_with_data()
        assert validate({"experiments": [export_experiment(exp)]}) == []

    def test_completed_export_validates(self):
        exp = _experiment_with_data()
        exp.complete()
        exported = export_experiment(exp)
        assert exported["completed"]
        assert exported["outcome"] == 1
        assert exported["score"]["choice"]["value"] == "blue"
        assert validate({"experiments": [exported]}) == []

    def test_complete_separation_exports(self, tmp_path):
        exp = Experiment(experiment_id="exp_color", name="Color", store=MemoryStore(), values=("red", "blue"))
        session = {exp.experiment_id: 0}
        for i in range(20):
            exp.choose(f"red_{i}", session)
            exp.convert(f"red_{i}", session)
        session[exp.experiment_id] = 1
        for i in range(20):
            exp.choose(f"blue_{i}", session)

        data = write_export([exp], tmp_path / "experiments.json")
        assert validate(data) == []
        assert data["experiments"][0]["score"]["choice"]["confidence"] == 99.9

    def test_write_export(self, tmp_path):
        path = tmp_path / "out" / "experiments.json"
        data = write_export([_experiment_with_data()], path)
        assert path.exists()
        assert data["experiments"][0]["experiment_id"] == "exp_color"
