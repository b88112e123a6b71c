"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


@dataclass(frozen=True)
class RulesConfig:
    """Core puzzle rules."""
    tube_capacity: int      # Maximum pieces per tube
    pieces_per_color: int   # Pieces dealt for every color
    max_level: int          # Highest playable level
    max_hints: int          # Hint budget per level attempt


@dataclass(frozen=True)
class TimerConfig:
    """Countdown timer parameters."""
    tick_seconds: float
    warning_threshold: int


@dataclass(frozen=True)
class ScoringConfig:
    """Star rating thresholds."""
    three_star_move_factor: float
    three_star_time_fraction: float
    two_star_move_factor: float
    two_star_time_fraction: float
    optimal_moves_per_color: int


@dataclass(frozen=True)
class DifficultyBand:
    """A fixed range of levels sharing one difficulty."""
    first_level: int
    last_level: int
    name: str
    colors: int
    empty_tubes: int
    time_limit: int

    def contains(self, level: int) -> bool:
        return self.first_level <= level <= self.last_level


@dataclass(frozen=True)
class ExpertConfig:
    """Open-ended band that grows with the level number."""
    name: str
    base_colors: int
    color_step_levels: int
    max_colors: int
    empty_tubes: int
    base_time_limit: int
    time_step_levels: int
    time_increment: int


@dataclass(frozen=True)
class ExpressionConfig:
    """Expression names and the integer mixing constants."""
    names: Tuple[str, ...]
    level_multiplier: int
    color_multiplier: int
    mix_multiplier: int
    seed_modulus: int
    lcg_a: int
    lcg_c: int
    lcg_m: int


@dataclass(frozen=True)
class ColorConfig:
    """A single palette entry."""
    index: int
    name: str
    hex: str

    @property
    def rgb(self) -> Tuple[int, int, int]:
        value = self.hex.lstrip("#")
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


@dataclass(frozen=True)
class EnvConfig:
    """Gymnasium environment limits."""
    max_moves_per_episode: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    rules: RulesConfig
    timer: TimerConfig
    scoring: ScoringConfig
    bands: Tuple[DifficultyBand, ...]
    expert: ExpertConfig
    expressions: ExpressionConfig
    palette: Tuple[ColorConfig, ...]
    env: EnvConfig

    @property
    def expert_first_level(self) -> int:
        """First level handled by the expert formula."""
        return self.bands[-1].last_level + 1 if self.bands else 1

    @property
    def num_expressions(self) -> int:
        return len(self.expressions.names)


def _parse_band(band_data: dict) -> DifficultyBand:
    """Parse one difficulty band from YAML."""
    return DifficultyBand(
        first_level=int(band_data["first_level"]),
        last_level=int(band_data["last_level"]),
        name=str(band_data["name"]),
        colors=int(band_data["colors"]),
        empty_tubes=int(band_data.get("empty_tubes", 2)),
        time_limit=int(band_data["time_limit"])
    )


def _parse_palette(palette_data: List) -> Tuple[ColorConfig, ...]:
    """Parse the color palette from YAML."""
    colors = []
    for i, entry in enumerate(palette_data):
        hex_value = str(entry["hex"])
        if len(hex_value.lstrip("#")) != 6:
            raise ValueError(f"Palette color must be #RRGGBB, got {hex_value}")
        colors.append(ColorConfig(index=i, name=str(entry["name"]), hex=hex_value))
    return tuple(colors)


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    rules = config.rules

    # A tube must be able to hold one full color stack
    if rules.tube_capacity < rules.pieces_per_color:
        raise ValueError(
            f"tube_capacity ({rules.tube_capacity}) must be >= "
            f"pieces_per_color ({rules.pieces_per_color})"
        )

    if rules.max_level < 1:
        raise ValueError(f"max_level must be positive, got {rules.max_level}")

    # Bands must be contiguous from level 1
    expected_first = 1
    for band in config.bands:
        if band.first_level != expected_first:
            raise ValueError(
                f"Band '{band.name}' starts at {band.first_level}, expected {expected_first}"
            )
        if band.last_level < band.first_level:
            raise ValueError(f"Band '{band.name}' is empty")
        if band.colors < 1:
            raise ValueError(f"Band '{band.name}' needs at least one color")
        expected_first = band.last_level + 1

    expert = config.expert
    if expert.color_step_levels <= 0 or expert.time_step_levels <= 0:
        raise ValueError("Expert step sizes must be positive")

    # Every color index needs a palette entry
    most_colors = max([b.colors for b in config.bands] + [expert.max_colors])
    if len(config.palette) < most_colors:
        raise ValueError(
            f"Palette has {len(config.palette)} colors but levels need up to {most_colors}"
        )

    if not config.expressions.names:
        raise ValueError("At least one expression name is required")

    scoring = config.scoring
    if scoring.three_star_move_factor > scoring.two_star_move_factor:
        raise ValueError("three_star_move_factor must not exceed two_star_move_factor")
    if scoring.three_star_time_fraction < scoring.two_star_time_fraction:
        raise ValueError("three_star_time_fraction must not be below two_star_time_fraction")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    rules_data = raw["rules"]
    rules = RulesConfig(
        tube_capacity=int(rules_data["tube_capacity"]),
        pieces_per_color=int(rules_data["pieces_per_color"]),
        max_level=int(rules_data["max_level"]),
        max_hints=int(rules_data.get("max_hints", 3))
    )

    timer_data = raw.get("timer", {})
    timer = TimerConfig(
        tick_seconds=float(timer_data.get("tick_seconds", 1.0)),
        warning_threshold=int(timer_data.get("warning_threshold", 10))
    )

    scoring_data = raw["scoring"]
    scoring = ScoringConfig(
        three_star_move_factor=float(scoring_data["three_star_move_factor"]),
        three_star_time_fraction=float(scoring_data["three_star_time_fraction"]),
        two_star_move_factor=float(scoring_data["two_star_move_factor"]),
        two_star_time_fraction=float(scoring_data["two_star_time_fraction"]),
        optimal_moves_per_color=int(scoring_data.get("optimal_moves_per_color", 4))
    )

    bands = tuple(_parse_band(b) for b in raw["difficulty_bands"])

    expert_data = raw["expert"]
    expert = ExpertConfig(
        name=str(expert_data.get("name", "Expert")),
        base_colors=int(expert_data["base_colors"]),
        color_step_levels=int(expert_data["color_step_levels"]),
        max_colors=int(expert_data["max_colors"]),
        empty_tubes=int(expert_data.get("empty_tubes", 2)),
        base_time_limit=int(expert_data["base_time_limit"]),
        time_step_levels=int(expert_data["time_step_levels"]),
        time_increment=int(expert_data["time_increment"])
    )

    expr_data = raw["expressions"]
    expressions = ExpressionConfig(
        names=tuple(str(n) for n in expr_data["names"]),
        level_multiplier=int(expr_data.get("level_multiplier", 37)),
        color_multiplier=int(expr_data.get("color_multiplier", 23)),
        mix_multiplier=int(expr_data.get("mix_multiplier", 13)),
        seed_modulus=int(expr_data.get("seed_modulus", 999983)),
        lcg_a=int(expr_data.get("lcg_a", 1664525)),
        lcg_c=int(expr_data.get("lcg_c", 1013904223)),
        lcg_m=int(expr_data.get("lcg_m", 2**32))
    )

    palette = _parse_palette(raw["palette"])

    env_data = raw.get("env", {})
    env = EnvConfig(
        max_moves_per_episode=int(env_data.get("max_moves_per_episode", 500))
    )

    config = GameConfig(
        rules=rules,
        timer=timer,
        scoring=scoring,
        bands=bands,
        expert=expert,
        expressions=expressions,
        palette=palette,
        env=env
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
