"""Deterministic A/B experiment assignment.

Assignment is hash-based: given the same (experiment name, identity) pair
and the same number of variants, the identity always lands on the same
variant index. No randomness and no stored state are involved, so any
process can compute the assignment independently.

An explicit override (a forced index from a test harness or a sticky
session value) takes precedence over the hash.
"""

import hashlib


def hash_bucket(experiment_name: str, identity: str) -> int:
    """Stable integer for an (experiment, identity) pair.

    The MD5 hex digest is read as a base-17 number. Every hex digit is a
    valid base-17 digit, so the parse never fails, and the value matches
    what earlier deployments of the engine computed for the same input.
    """
    hash_input = f"{experiment_name}/{identity}"
    return int(hashlib.md5(hash_input.encode()).hexdigest(), 17)


def assign_index(
    experiment_name: str,
    identity: str,
    variant_count: int,
    override: int | None = None,
) -> int:
    """Return the variant index for identity.

    Overrides outside ``range(variant_count)`` are ignored.
    """
    if variant_count < 1:
        raise ValueError(f"variant_count must be positive, got {variant_count}")
    if override is not None and 0 <= override < variant_count:
        return override
    return hash_bucket(experiment_name, identity) % variant_count
