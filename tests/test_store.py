"""Tests for the counter store implementations."""

import threading

import pytest

from src.ab.experiment import Experiment
from src.store.base import namespaced
from src.store.memory import MemoryStore
from src.warehouse.db import DuckDBStore, get_connection


@pytest.fixture(params=["memory", "duckdb"])
def store(request):
    if request.param == "memory":
        yield MemoryStore()
    else:
        duck = DuckDBStore(get_connection(":memory:"))
        yield duck
        duck.close()


class TestCounterStore:
    def test_add_is_idempotent(self, store):
        store.add("s", "a")
        store.add("s", "a")
        store.add("s", "b")
        assert store.cardinality("s") == 2

    def test_is_member(self, store):
        store.add("s", "a")
        assert store.is_member("s", "a")
        assert not store.is_member("s", "b")
        assert not store.is_member("other", "a")

    def test_cardinality_of_missing_set(self, store):
        assert store.cardinality("missing") == 0

    def test_increment(self, store):
        assert store.increment("c") == 1
        assert store.increment("c") == 2
        assert store.get("c") == "2"

    def test_get_missing(self, store):
        assert store.get("missing") is None

    def test_set_if_absent(self, store):
        assert store.set_if_absent("k", "first")
        assert not store.set_if_absent("k", "second")
        assert store.get("k") == "first"

    def test_delete(self, store):
        store.add("s", "a")
        store.increment("c")
        store.delete("s")
        store.delete("c")
        store.delete("never_set")
        assert store.cardinality("s") == 0
        assert store.get("c") is None
        assert store.set_if_absent("c", "again")


class TestNamespacing:
    def test_key_layout(self):
        assert namespaced("exp_color", "variants", 1, "participants") == "ab:exp_color:variants:1:participants"


class TestDuckDBStore:
    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "nested" / "experiments.duckdb")
        store = DuckDBStore.open(db_path)
        store.add("s", "a")
        store.increment("c")
        store.set_if_absent("outcome", "1")
        store.close()

        reopened = DuckDBStore.open(db_path)
        assert reopened.cardinality("s") == 1
        assert reopened.get("c") == "1"
        assert not reopened.set_if_absent("outcome", "0")
        reopened.close()

    def test_experiment_on_duckdb(self, tmp_path):
        store = DuckDBStore.open(str(tmp_path / "experiments.duckdb"))
        exp = Experiment(experiment_id="exp_color", name="Color", store=store, values=("red", "blue"))
        session = {}
        exp.chooses("blue", session)
        for i in range(10):
            exp.choose(f"user_{i}", session)
        for i in range(4):
            exp.convert(f"user_{i}", session)

        blue = exp.variants[1]
        assert blue.participants() == 10
        assert blue.converted() == 4
        assert exp.complete().value == "blue"
        assert exp.choose("someone_else") == "blue"
        store.close()

    def test_concurrent_writers(self, tmp_path):
        store = DuckDBStore.open(str(tmp_path / "experiments.duckdb"))
        barrier = threading.Barrier(8)
        written, counts, errors = [], [], []

        def worker(i):
            try:
                barrier.wait()
                store.add("participants", "same_identity")
                counts.append(store.increment("conversions"))
                written.append(store.set_if_absent("outcome", str(i)))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert store.cardinality("participants") == 1
        assert sorted(counts) == list(range(1, 9))
        assert written.count(True) == 1
        assert store.get("conversions") == "8"
        store.close()
