"""Simulation parameters for driving traffic through an experiment.

The defaults model a two-colour button test where the second colour
converts a little better, with enough users for the z-test to reach
significance most of the time.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    num_users: int = 2000
    # Random seed for reproducibility
    seed: int = 42

    experiment_id: str = "exp_button_color_v1"
    experiment_name: str = "Button color"
    values: tuple[str, ...] = ("red", "blue")

    # Probability that a participant converts, one per variant (same order as values)
    conversion_rates: tuple[float, ...] = (0.10, 0.14)
    # Probability that a converted participant converts again
    prob_repeat_conversion: float = 0.20

    def __post_init__(self):
        if len(self.conversion_rates) != len(self.values):
            raise ValueError(
                f"Need one conversion rate per value, got {len(self.conversion_rates)} "
                f"rates for {len(self.values)} values"
            )
        for rate in (*self.conversion_rates, self.prob_repeat_conversion):
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"Probabilities must be within [0, 1], got {rate}")
