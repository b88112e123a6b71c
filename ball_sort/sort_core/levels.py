"""
Level Configuration
===================

Pure mapping from a level number to its difficulty descriptor.

Levels outside [1, max_level] are clamped into range by default. Pass
``strict=True`` to get a LevelOutOfRangeError instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ball_sort.sort_core.config_loader import GameConfig, get_config


class LevelOutOfRangeError(ValueError):
    """Raised for a level outside the supported table."""

    def __init__(self, level: int, max_level: int):
        super().__init__(f"Level {level} outside supported range [1, {max_level}]")
        self.level = level
        self.max_level = max_level


@dataclass(frozen=True)
class LevelConfig:
    """Difficulty descriptor for one level."""
    level: int
    difficulty_name: str
    color_count: int
    pieces_per_color: int
    total_tubes: int
    filled_tubes: int
    empty_tubes: int
    tube_capacity: int
    time_limit_seconds: int

    @property
    def total_pieces(self) -> int:
        return self.color_count * self.pieces_per_color


def clamp_level(level: int, config: Optional[GameConfig] = None) -> int:
    """Clamp a level number into [1, max_level]."""
    if config is None:
        config = get_config()
    return max(1, min(int(level), config.rules.max_level))


def config_for(level: int, config: Optional[GameConfig] = None, strict: bool = False) -> LevelConfig:
    """
    Get the difficulty descriptor for a level.

    Args:
        level: Level number, nominally in [1, max_level].
        config: Game configuration. Uses default if None.
        strict: If True, raise instead of clamping out-of-range levels.

    Returns:
        LevelConfig for the (possibly clamped) level.

    Raises:
        LevelOutOfRangeError: If strict and level is out of range.
    """
    if config is None:
        config = get_config()

    max_level = config.rules.max_level
    if strict and not 1 <= level <= max_level:
        raise LevelOutOfRangeError(level, max_level)
    level = clamp_level(level, config)

    for band in config.bands:
        if band.contains(level):
            name = band.name
            colors = band.colors
            empty_tubes = band.empty_tubes
            time_limit = band.time_limit
            break
    else:
        expert = config.expert
        offset = level - (config.expert_first_level - 1)
        name = expert.name
        colors = min(expert.base_colors + offset // expert.color_step_levels, expert.max_colors)
        empty_tubes = expert.empty_tubes
        time_limit = expert.base_time_limit + (offset // expert.time_step_levels) * expert.time_increment

    return LevelConfig(
        level=level,
        difficulty_name=name,
        color_count=colors,
        pieces_per_color=config.rules.pieces_per_color,
        total_tubes=colors + empty_tubes,
        filled_tubes=colors,
        empty_tubes=empty_tubes,
        tube_capacity=config.rules.tube_capacity,
        time_limit_seconds=time_limit
    )


def is_playable_level(level: int, max_level_reached: int, config: Optional[GameConfig] = None) -> bool:
    """True if the player may jump to this level."""
    if config is None:
        config = get_config()
    return 1 <= level <= min(max_level_reached, config.rules.max_level)
