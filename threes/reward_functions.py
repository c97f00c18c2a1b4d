"""Transforms applied to the raw slide reward before it enters the value estimate."""

import math
from typing import Callable, Dict

RewardFunction = Callable[[int], float]


def log_bin_reward(reward: int) -> float:
    """Logarithmic binning: ``2 ** floor(ln(r + 1)) * 32``.

    Rewards 0 and 1 map to 32, 2..6 to 64, 7..19 to 128 and so on, which keeps
    the target on the same scale as a handful of summed weights.
    """
    return float((1 << int(math.floor(math.log(reward + 1)))) << 5)


def identity_reward(reward: int) -> float:
    return float(reward)


def log2_reward(reward: int) -> float:
    return math.log2(reward + 1)


REWARD_FUNCTIONS: Dict[str, RewardFunction] = {
    "log_bin": log_bin_reward,
    "identity": identity_reward,
    "log2": log2_reward,
}


def get_reward_function(reward_type: str = "log_bin") -> RewardFunction:
    """Get a reward transform by name (log_bin, identity, log2)"""
    try:
        return REWARD_FUNCTIONS[reward_type]
    except KeyError:
        raise ValueError(f"Unknown reward type: {reward_type}") from None
