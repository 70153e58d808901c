"""Simulation engine that pushes seeded user traffic through an experiment.

Each simulated user is shown the experiment (choose), then converts with
the probability configured for the variant they landed on, sometimes more
than once. Assignment stays deterministic; only the conversion decisions
use the seeded RNG.
"""

import random

from src.ab.experiment import Experiment
from src.simulator.config import SimulationConfig


def simulate_traffic(
    experiment: Experiment,
    config: SimulationConfig | None = None,
) -> dict[str, dict[str, int]]:
    """Run config.num_users through the experiment.

    Returns per-value counts of what the simulation did:
    ``{value: {"users": ..., "conversions": ...}}``. These are the calls
    made, not what the store recorded (conversions after completion are
    ignored by the experiment).
    """
    if config is None:
        config = SimulationConfig()

    rng = random.Random(config.seed)
    counts = {str(value): {"users": 0, "conversions": 0} for value in experiment.values}

    for i in range(config.num_users):
        identity = f"user_{i:05d}"
        value = experiment.choose(identity)
        counts[str(value)]["users"] += 1

        variant = experiment.variant_for(value)
        if rng.random() >= config.conversion_rates[variant.index]:
            continue  # didn't convert

        experiment.convert(identity)
        counts[str(value)]["conversions"] += 1
        while rng.random() < config.prob_repeat_conversion:
            experiment.convert(identity)
            counts[str(value)]["conversions"] += 1

    return counts
