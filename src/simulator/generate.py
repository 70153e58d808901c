"""CLI entrypoint: simulate an experiment, score it and export the results.

Usage:
    python -m src.simulator.generate
    python -m src.simulator.generate --users 5000 --seed 7
    python -m src.simulator.generate --complete   # fix the outcome afterwards
"""

import argparse

from src.ab.experiment import Experiment
from src.analysis.export import write_export
from src.simulator.config import SimulationConfig
from src.simulator.engine import simulate_traffic
from src.utils.logger import setup_logger
from src.warehouse.db import DEFAULT_DB_PATH, DuckDBStore


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Simulate and score an A/B experiment")
    parser.add_argument("--users", type=int, default=2000, help="Number of users")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--db", type=str, default=DEFAULT_DB_PATH, help="Database path")
    parser.add_argument("--out", type=str, default="data/experiments.json", help="Export path")
    parser.add_argument("--complete", action="store_true", help="Complete the experiment after the run")
    parser.add_argument("--keep", action="store_true", help="Keep counts from previous runs")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    opts = parser.parse_args(args)

    setup_logger(opts.verbose)
    config = SimulationConfig(num_users=opts.users, seed=opts.seed)

    store = DuckDBStore.open(opts.db)
    try:
        experiment = Experiment(
            experiment_id=config.experiment_id,
            name=config.experiment_name,
            store=store,
            values=config.values,
        ).save()
        if not opts.keep:
            experiment.reset()

        print(f"Experiment: {experiment.name} ({experiment.experiment_id})")
        for variant, rate in zip(experiment.variants, config.conversion_rates):
            print(f"  {variant.name}: {variant.value} (simulated rate {rate:.0%})")

        print(f"Simulating {config.num_users} users (seed={config.seed})...")
        counts = simulate_traffic(experiment, config)
        for value, c in counts.items():
            print(f"  {value}: {c['users']} users, {c['conversions']} conversions")

        if opts.complete:
            outcome = experiment.complete()
            print(f"Outcome: {outcome.value if outcome else 'none yet'}")

        print()
        for claim in experiment.conclusion():
            print(claim)

        write_export([experiment], opts.out)
        print(f"\nExported to {opts.out}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
