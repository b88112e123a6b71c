"""
Expression Assignment
=====================

Deterministic mapping from (level, color index) to a cosmetic face expression.

The same color in the same level always wears the same expression, across
calls and across processes. Expressions never influence move validity.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from ball_sort.sort_core.config_loader import GameConfig, get_config


class Expression(str, Enum):
    ANGRY = "angry"
    LAUGHING = "laughing"
    CRYING = "crying"
    SURPRISED = "surprised"
    SLEEPING = "sleeping"


def expression_seed(level: int, color_index: int, config: Optional[GameConfig] = None) -> int:
    """
    Mix level and color index into a bounded integer seed.

    Args:
        level: Level number.
        color_index: Color index of the piece.
        config: Game configuration. Uses default if None.

    Returns:
        Seed in [0, seed_modulus).
    """
    if config is None:
        config = get_config()
    params = config.expressions

    mixed = (level * params.level_multiplier + color_index * params.color_multiplier) * params.mix_multiplier
    return abs(mixed) % params.seed_modulus


def seeded_index(seed: int, count: int, config: Optional[GameConfig] = None) -> int:
    """
    One linear congruential step, scaled to [0, count).

    Integer arithmetic throughout, so results do not depend on float rounding.
    """
    if config is None:
        config = get_config()
    params = config.expressions

    x = (params.lcg_a * seed + params.lcg_c) % params.lcg_m
    return (x * count) // params.lcg_m


def expression_for(level: int, color_index: int, config: Optional[GameConfig] = None) -> Expression:
    """
    Get the expression for a color in a level.

    Args:
        level: Level number.
        color_index: Color index of the piece.
        config: Game configuration. Uses default if None.

    Returns:
        The Expression for this (level, color) pair.
    """
    if config is None:
        config = get_config()

    names = config.expressions.names
    seed = expression_seed(level, color_index, config)
    return Expression(names[seeded_index(seed, len(names), config)])


def level_expressions(level: int, color_count: int, config: Optional[GameConfig] = None) -> Dict[int, Expression]:
    """Expression mapping for every color of a level, keyed by color index."""
    return {
        color_index: expression_for(level, color_index, config)
        for color_index in range(color_count)
    }
