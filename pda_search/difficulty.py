"""
difficulty.py - Static estimate of how long a PDA search will take
"""

import math
from enum import Enum
from typing import NamedTuple

# Base58 has 58 characters
ALPHABET_SIZE = 58
# Derivations per second assumed for the time estimate
ASSUMED_RATE = 1000


class Tier(Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    VERY_HARD = "Very Hard"
    EXTREME = "Extreme"


class DifficultyEstimate(NamedTuple):
    total_combinations: int
    estimated_seconds: float
    tier: Tier
    estimated_time: str


def total_combinations(seeds):
    """Number of seed combinations: the product of every spec's cardinality"""
    return math.prod(spec.cardinality for spec in seeds)


def constraint_difficulty(constraints):
    """Expected attempts per match implied by prefix, suffix and contains"""
    pattern_len = sum(
        len(pattern)
        for pattern in (constraints.prefix, constraints.suffix, constraints.contains)
        if pattern
    )
    return ALPHABET_SIZE ** pattern_len


def classify(estimated_seconds):
    """Map an estimated duration to its tier and a short human string"""
    if estimated_seconds < 1:
        return Tier.EASY, "< 1 second"
    elif estimated_seconds < 10:
        return Tier.MEDIUM, f"~{math.ceil(estimated_seconds)} seconds"
    elif estimated_seconds < 300:
        return Tier.HARD, f"~{math.ceil(estimated_seconds / 60)} minutes"
    elif estimated_seconds < 3600:
        return Tier.VERY_HARD, f"~{math.ceil(estimated_seconds / 60)} minutes"
    return Tier.EXTREME, f"~{math.ceil(estimated_seconds / 3600):,} hours"


def estimate_difficulty(seeds, constraints):
    """Estimate the search space and the time needed to explore what matters of it"""
    total = total_combinations(seeds)
    effective = min(total, constraint_difficulty(constraints))
    estimated_seconds = effective / ASSUMED_RATE
    tier, estimated_time = classify(estimated_seconds)
    return DifficultyEstimate(total, estimated_seconds, tier, estimated_time)
