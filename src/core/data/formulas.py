"""Numeric balancing model.

Every combat number flows through these functions:
- Power curve: linear at low levels, geometric at high levels
- Level from power: closed-form inverse of the power curve (Lambert W)
- Fuzzy rounding: integer results whose average equals the real value
- Costs and rewards derived from the power and experience curves

All functions take an optional BalanceConfig so tests and tools can evaluate
the curves under alternate constants.
"""

from typing import Union

import numpy as np
from numpy.typing import NDArray

from .balance import BalanceConfig, DEFAULT_BALANCE

Number = Union[int, float]
ArrayLike = Union[Number, NDArray[np.float64]]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer with halves rounded up."""
    return int(np.floor(value + 0.5))


def fuzzy_round(value: Number, rng: np.random.Generator) -> int:
    """Round to floor(value) with probability 1 - frac(value), else ceil(value).

    Individual results are integers while the expected value equals the
    input exactly, so fractional damage averages out over many hits.
    """
    floor_value = np.floor(value)
    fraction = value - floor_value
    if fraction > 0 and rng.random() < fraction:
        floor_value += 1
    return int(floor_value)


def get_power_multiplier(level: ArrayLike, balance: BalanceConfig = DEFAULT_BALANCE) -> ArrayLike:
    """Power of an entity at the given level (scalar or array)."""
    level_array = np.asarray(level, dtype=np.float64)
    power = (
        balance.power_multiplier_coefficient * level_array
        + np.power(balance.power_multiplier_base, level_array)
        - balance.power_multiplier_offset
    )
    if power.ndim == 0:
        return float(power)
    return power


def get_power_normalization(balance: BalanceConfig = DEFAULT_BALANCE) -> float:
    """Power at the reference level that authored offsets are written against."""
    return get_power_multiplier(balance.power_normalization_level, balance)


def lambert_w_from_log(log_x: ArrayLike, iterations: int = 60) -> ArrayLike:
    """Principal branch of the Lambert W function, evaluated from log(x).

    Working from log(x) keeps the solver usable for arguments far beyond the
    float range, which the level inverse reaches at high power.

    Args:
        log_x: Natural logarithm of the argument (scalar or array)
        iterations: Newton iterations on w + log(w) = log(x)

    Returns:
        W(x) with the same shape as the input
    """
    log_array = np.asarray(log_x, dtype=np.float64)
    x = np.exp(np.minimum(log_array, 700.0))
    safe_log = np.maximum(log_array, 1.0)
    w = np.where(log_array > 1.0, safe_log - np.log(safe_log), x / (1.0 + x))
    for _ in range(iterations):
        w = w * (1.0 + log_array - np.log(w)) / (w + 1.0)
    if w.ndim == 0:
        return float(w)
    return w


def get_level_from_power(power: ArrayLike, balance: BalanceConfig = DEFAULT_BALANCE) -> ArrayLike:
    """Invert the power curve.

    Solving c*L + b**L - o = p gives
    L = k/c - W(a * exp(a * k)) / ln(b) with k = p + o and a = ln(b) / c.
    """
    coefficient = balance.power_multiplier_coefficient
    log_base = np.log(balance.power_multiplier_base)
    k = np.asarray(power, dtype=np.float64) + balance.power_multiplier_offset
    a = log_base / coefficient
    w = lambert_w_from_log(np.log(a) + a * k)
    level = k / coefficient - np.asarray(w) / log_base
    if level.ndim == 0:
        return float(level)
    return level


def get_experience_multiplier(level: Number, balance: BalanceConfig = DEFAULT_BALANCE) -> float:
    return balance.experience_multiplier_offset + level


def get_level_up_cost(level: int, balance: BalanceConfig = DEFAULT_BALANCE) -> int:
    """Experience needed to advance from level to level + 1."""
    return round_half_up(
        get_experience_multiplier(level, balance) * balance.level_up_cost_base ** level
    )


def get_action_learn_cost(level: int, balance: BalanceConfig = DEFAULT_BALANCE) -> int:
    """Undiscounted experience cost of learning an action at the given level."""
    return round_half_up(
        balance.action_learn_cost_coefficient
        * get_experience_multiplier(level, balance)
        * (level + balance.action_learn_cost_offset)
    )


def get_damage_multiplier(damage: Number, balance: BalanceConfig = DEFAULT_BALANCE) -> float:
    """Scale applied to health loss; neutral at the normalization damage."""
    return float(balance.damage_multiplier_base ** (
        balance.damage_multiplier_coefficient * (damage - balance.damage_multiplier_normalization)
    ))


def get_maximum_health(level: int, balance: BalanceConfig = DEFAULT_BALANCE) -> int:
    """Maximum health grows with power so fights last similarly long at every level."""
    ratio = get_power_multiplier(level, balance) / get_power_normalization(balance)
    return max(1, round_half_up(balance.maximum_health_scale * ratio))


def get_reward_multiplier(
    winner_level: int,
    loser_level: int,
    balance: BalanceConfig = DEFAULT_BALANCE
) -> float:
    """Logistic curve over the log power gap between loser and winner.

    Approaches 1 when the loser is much stronger and 0 when it is much weaker.
    """
    winner_power = get_power_multiplier(winner_level, balance)
    loser_power = get_power_multiplier(loser_level, balance)
    exponent = -balance.reward_steepness * np.log2(loser_power / winner_power) + balance.reward_center
    return float(1 / (1 + 2 ** exponent))


def get_gold_reward(
    winner_level: int,
    loser_level: int,
    rng: np.random.Generator,
    balance: BalanceConfig = DEFAULT_BALANCE
) -> int:
    multiplier = get_reward_multiplier(winner_level, loser_level, balance)
    return fuzzy_round(balance.reward_gold_scale * multiplier, rng)


def get_experience_reward(
    winner_level: int,
    loser_level: int,
    rng: np.random.Generator,
    balance: BalanceConfig = DEFAULT_BALANCE
) -> int:
    multiplier = get_reward_multiplier(winner_level, loser_level, balance)
    scale = balance.reward_experience_scale * get_experience_multiplier(loser_level, balance)
    return fuzzy_round(scale * multiplier, rng)
