"""
State Snapshot
==============

Immutable copies of session state for listeners, plus fixed-size numpy
packing for agents.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ball_sort.sort_core.board import Board
from ball_sort.sort_core.config_loader import GameConfig, get_config
from ball_sort.sort_core.levels import LevelConfig


class SessionStatus(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"
    TIME_UP = "time_up"


@dataclass(frozen=True, eq=False)
class SessionSnapshot:
    """
    Point-in-time view of a game session.

    Tubes are tuples of color indices, bottom first. Expressions are keyed
    by color index and are cosmetic.
    """
    level: int
    difficulty_name: str
    status: SessionStatus
    moves: int
    selected_tube: Optional[int]
    hints_used: int
    hints_remaining: int
    time_remaining: int
    time_limit: int
    max_level_reached: int
    can_undo: bool
    capacity: int
    tubes: Tuple[Tuple[int, ...], ...]
    expressions: Tuple[Tuple[int, str], ...]

    # Padded board for agents
    board_array: np.ndarray           # (MAX_TUBES, capacity) int16, -1 = empty slot
    tube_mask: np.ndarray             # (MAX_TUBES,) bool

    @property
    def num_tubes(self) -> int:
        return len(self.tubes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "level": self.level,
            "difficulty_name": self.difficulty_name,
            "status": self.status.value,
            "moves": self.moves,
            "selected_tube": self.selected_tube,
            "hints_used": self.hints_used,
            "hints_remaining": self.hints_remaining,
            "time_remaining": self.time_remaining,
            "time_limit": self.time_limit,
            "max_level_reached": self.max_level_reached,
            "can_undo": self.can_undo,
            "capacity": self.capacity,
            "tubes": [list(t) for t in self.tubes],
            "expressions": {str(c): e for c, e in self.expressions},
        }

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            "board": self.board_array,
            "tube_mask": self.tube_mask,
            "level": np.array(self.level, dtype=np.int32),
            "moves": np.array(self.moves, dtype=np.int32),
            "selected_tube": np.array(-1 if self.selected_tube is None else self.selected_tube, dtype=np.int32),
            "hints_remaining": np.array(self.hints_remaining, dtype=np.int32),
            "time_remaining": np.array(self.time_remaining, dtype=np.int32),
        }


def max_tubes_for(config: GameConfig) -> int:
    """Largest tube count any level can have."""
    band_max = max((b.colors + b.empty_tubes for b in config.bands), default=0)
    return max(band_max, config.expert.max_colors + config.expert.empty_tubes)


class SnapshotBuilder:
    """Builds session snapshots with a fixed padded board shape."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_tubes = max_tubes_for(config)
        self._capacity = config.rules.tube_capacity

    @property
    def max_tubes(self) -> int:
        return self._max_tubes

    @property
    def capacity(self) -> int:
        return self._capacity

    def pack_board(self, board: Board) -> Tuple[np.ndarray, np.ndarray]:
        """Pack tubes into a (max_tubes, capacity) array padded with -1."""
        board_array = np.full((self._max_tubes, self._capacity), -1, dtype=np.int16)
        tube_mask = np.zeros(self._max_tubes, dtype=bool)

        for i, tube in enumerate(board.tubes[:self._max_tubes]):
            tube_mask[i] = True
            for j, piece in enumerate(tube[:self._capacity]):
                board_array[i, j] = piece.color_index

        return board_array, tube_mask

    def build(
        self,
        board: Board,
        level_config: LevelConfig,
        status: SessionStatus,
        moves: int,
        selected_tube: Optional[int],
        hints_used: int,
        time_remaining: int,
        max_level_reached: int,
        can_undo: bool
    ) -> SessionSnapshot:
        """Build a snapshot from current session state."""
        board_array, tube_mask = self.pack_board(board)

        expressions = {}
        for tube in board.tubes:
            for piece in tube:
                if piece.expression is not None:
                    expressions.setdefault(piece.color_index, piece.expression.value)

        return SessionSnapshot(
            level=level_config.level,
            difficulty_name=level_config.difficulty_name,
            status=status,
            moves=moves,
            selected_tube=selected_tube,
            hints_used=hints_used,
            hints_remaining=max(0, self._config.rules.max_hints - hints_used),
            time_remaining=time_remaining,
            time_limit=level_config.time_limit_seconds,
            max_level_reached=max_level_reached,
            can_undo=can_undo,
            capacity=board.capacity,
            tubes=board.color_layout(),
            expressions=tuple(sorted(expressions.items())),
            board_array=board_array,
            tube_mask=tube_mask
        )
