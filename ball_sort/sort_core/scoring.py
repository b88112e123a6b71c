"""
Completion & Scoring
====================

Detects a solved board and rates a finished level with 1-3 stars.

Stars compare the move count against a coarse estimate of the optimum
(colors * optimal_moves_per_color) and the fraction of time left:

- 3 stars: moves <= optimal * 1.0 and more than half the time left
- 2 stars: moves <= optimal * 1.5 and more than a quarter left
- 1 star otherwise
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ball_sort.sort_core.board import Board
from ball_sort.sort_core.config_loader import GameConfig, get_config
from ball_sort.sort_core.levels import config_for


@dataclass(frozen=True)
class LevelResult:
    """Outcome of a completed level."""
    level: int
    moves: int
    time_remaining: int
    stars: int
    is_perfect: bool


def is_tube_sorted(board: Board, tube_index: int) -> bool:
    """True if a tube is empty or a finished single-color stack."""
    tube = board[tube_index]
    if not tube:
        return True
    if len(tube) != board.completion_height:
        return False
    first = tube[0].color_index
    return all(p.color_index == first for p in tube)


def is_complete(board: Board) -> bool:
    """True iff every tube is empty or finished."""
    return all(is_tube_sorted(board, i) for i in range(board.num_tubes))


def optimal_moves(level: int, config: Optional[GameConfig] = None) -> int:
    """Heuristic move target for a level. Not a true shortest solution."""
    if config is None:
        config = get_config()
    return config_for(level, config).color_count * config.scoring.optimal_moves_per_color


def stars(moves: int, time_remaining: float, level: int, config: Optional[GameConfig] = None) -> int:
    """
    Star rating for a finished level.

    Args:
        moves: Moves the player used.
        time_remaining: Seconds left on the clock.
        level: Level number.
        config: Game configuration. Uses default if None.

    Returns:
        1, 2 or 3.
    """
    if config is None:
        config = get_config()
    scoring = config.scoring

    target = optimal_moves(level, config)
    time_fraction = time_remaining / config_for(level, config).time_limit_seconds

    if moves <= target * scoring.three_star_move_factor and time_fraction > scoring.three_star_time_fraction:
        return 3
    if moves <= target * scoring.two_star_move_factor and time_fraction > scoring.two_star_time_fraction:
        return 2
    return 1


def is_perfect(moves: int, level: int, config: Optional[GameConfig] = None) -> bool:
    """True if the level was solved within the move target."""
    return moves <= optimal_moves(level, config)


def level_result(moves: int, time_remaining: int, level: int, config: Optional[GameConfig] = None) -> LevelResult:
    """Bundle the rating of a finished level."""
    return LevelResult(
        level=level,
        moves=moves,
        time_remaining=time_remaining,
        stars=stars(moves, time_remaining, level, config),
        is_perfect=is_perfect(moves, level, config)
    )
