"""
Board Model
===========

Pieces, tubes and the board that owns them.

A tube is a list of pieces, index 0 at the bottom and the last element on top.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ball_sort.sort_core.config_loader import GameConfig
from ball_sort.sort_core.expressions import Expression, expression_for

Tube = List["Piece"]


@dataclass(frozen=True)
class Piece:
    """
    A colored piece. Equality and hashing use color_index only; the
    expression is cosmetic and recomputable from (level, color_index).
    """
    color_index: int
    expression: Optional[Expression] = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"Piece({self.color_index})"


class Board:
    """
    Ordered collection of tubes with a shared capacity.

    Tube order is tube identity: indices are stable for the life of the board.
    """

    def __init__(
        self,
        tubes: Iterable[Iterable[Piece]],
        capacity: int,
        pieces_per_color: Optional[int] = None
    ):
        """
        Args:
            tubes: Initial tube contents, bottom first.
            capacity: Maximum pieces per tube.
            pieces_per_color: Pieces of each color on a full board. Defaults
                to capacity for hand-built boards.
        """
        self.tubes: List[Tube] = [list(t) for t in tubes]
        self.capacity = capacity
        self.pieces_per_color = capacity if pieces_per_color is None else pieces_per_color

        for i, tube in enumerate(self.tubes):
            if len(tube) > capacity:
                raise ValueError(f"Tube {i} holds {len(tube)} pieces, capacity is {capacity}")

    @classmethod
    def from_colors(
        cls,
        layout: Sequence[Sequence[int]],
        capacity: int,
        pieces_per_color: Optional[int] = None,
        level: int = 1,
        config: Optional[GameConfig] = None
    ) -> "Board":
        """Build a board from color indices, bottom first."""
        tubes = [
            [Piece(c, expression_for(level, c, config)) for c in tube]
            for tube in layout
        ]
        return cls(tubes, capacity, pieces_per_color)

    def __len__(self) -> int:
        return len(self.tubes)

    def __getitem__(self, index: int) -> Tube:
        return self.tubes[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.capacity == other.capacity and self.color_layout() == other.color_layout()

    def __repr__(self) -> str:
        return f"Board(capacity={self.capacity}, tubes={list(self.color_layout())})"

    @property
    def num_tubes(self) -> int:
        return len(self.tubes)

    @property
    def completion_height(self) -> int:
        """Height of a finished tube: a full color stack that fits the tube."""
        return min(self.capacity, self.pieces_per_color)

    @property
    def total_pieces(self) -> int:
        return sum(len(t) for t in self.tubes)

    def has_tube(self, index: int) -> bool:
        return 0 <= index < len(self.tubes)

    def is_empty(self, index: int) -> bool:
        return not self.tubes[index]

    def is_full(self, index: int) -> bool:
        return len(self.tubes[index]) >= self.capacity

    def free_space(self, index: int) -> int:
        return self.capacity - len(self.tubes[index])

    def top(self, index: int) -> Optional[Piece]:
        """Top piece of a tube, or None if empty."""
        tube = self.tubes[index]
        return tube[-1] if tube else None

    def color_counts(self) -> Dict[int, int]:
        """Number of pieces per color index across the board."""
        return dict(Counter(p.color_index for tube in self.tubes for p in tube))

    def color_layout(self) -> Tuple[Tuple[int, ...], ...]:
        """Tube contents as color indices, bottom first."""
        return tuple(tuple(p.color_index for p in tube) for tube in self.tubes)

    def copy(self) -> "Board":
        return Board(self.tubes, self.capacity, self.pieces_per_color)
