"""
Puzzle Generator
================

Builds the starting board for a level: a uniform shuffle of a solved
arrangement, dealt into the filled tubes with the empty tubes left empty.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from ball_sort.sort_core.board import Board, Piece
from ball_sort.sort_core.config_loader import GameConfig, get_config
from ball_sort.sort_core.expressions import expression_for
from ball_sort.sort_core.levels import LevelConfig, config_for

logger = logging.getLogger(__name__)


class PuzzleGenerator:
    """
    Shuffles and deals pieces for a level.

    With seed=None the generator draws from OS entropy, so every board is
    new. A seed makes the sequence of boards reproducible.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize generator.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = random.Random(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed the generator."""
        self._rng = random.Random(seed)

    def build_pieces(self, level_config: LevelConfig) -> List[Piece]:
        """All pieces for a level in solved order, color by color."""
        pieces = []
        for color_index in range(level_config.color_count):
            piece = Piece(color_index, expression_for(level_config.level, color_index, self._config))
            pieces.extend([piece] * level_config.pieces_per_color)
        return pieces

    def generate(self, level: int) -> Board:
        """
        Generate a shuffled board for a level.

        Args:
            level: Level number (clamped into the supported range).

        Returns:
            Board with filled_tubes tubes of pieces_per_color pieces each,
            followed by empty_tubes empty tubes.
        """
        level_config = config_for(level, self._config)

        pieces = self.build_pieces(level_config)
        self._rng.shuffle(pieces)

        per_tube = level_config.pieces_per_color
        tubes = [
            pieces[i * per_tube:(i + 1) * per_tube]
            for i in range(level_config.filled_tubes)
        ]
        tubes.extend([] for _ in range(level_config.empty_tubes))

        logger.debug(
            "Level %d generated: %d colors, %d tubes",
            level_config.level, level_config.color_count, level_config.total_tubes
        )
        return Board(tubes, level_config.tube_capacity, level_config.pieces_per_color)


def generate(level: int, config: Optional[GameConfig] = None, seed: Optional[int] = None) -> Board:
    """Generate one board with a fresh generator."""
    return PuzzleGenerator(config, seed).generate(level)
