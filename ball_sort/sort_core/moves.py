"""
Move Rules
==========

Move validation and application.

A move takes the run of same-colored pieces on top of the source tube and
places as many as fit onto the target tube. One move is one player action,
however many pieces it transfers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

from ball_sort.sort_core.board import Board


class RejectReason(str, Enum):
    """Why a move attempt was refused."""
    SAME_TUBE = "same_tube"
    BAD_INDEX = "bad_index"
    SOURCE_EMPTY = "source_empty"
    TARGET_FULL = "target_full"
    COLOR_MISMATCH = "color_mismatch"
    NOT_PLAYING = "not_playing"


@dataclass(frozen=True)
class MoveRecord:
    """An applied move, kept for undo."""
    from_tube: int
    to_tube: int
    count: int


def check_move(board: Board, from_tube: int, to_tube: int) -> Optional[RejectReason]:
    """
    Check a move against the rules.

    Returns:
        None if the move is legal, otherwise the reason it is not.
    """
    if not (board.has_tube(from_tube) and board.has_tube(to_tube)):
        return RejectReason.BAD_INDEX
    if from_tube == to_tube:
        return RejectReason.SAME_TUBE
    if board.is_empty(from_tube):
        return RejectReason.SOURCE_EMPTY
    if board.is_full(to_tube):
        return RejectReason.TARGET_FULL
    if board.is_empty(to_tube):
        return None
    if board.top(from_tube).color_index != board.top(to_tube).color_index:
        return RejectReason.COLOR_MISMATCH
    return None


def is_valid_move(board: Board, from_tube: int, to_tube: int) -> bool:
    return check_move(board, from_tube, to_tube) is None


def count_top_run(board: Board, tube_index: int) -> int:
    """Number of consecutive same-colored pieces from the top of a tube."""
    tube = board[tube_index]
    if not tube:
        return 0

    top_color = tube[-1].color_index
    count = 0
    for piece in reversed(tube):
        if piece.color_index != top_color:
            break
        count += 1
    return count


def apply_move(board: Board, from_tube: int, to_tube: int) -> MoveRecord:
    """
    Transfer the top run from one tube to another.

    Pieces keep their order: the piece on top of the source ends on top of
    the target.

    Raises:
        ValueError: If the move is not legal. Callers check first.
    """
    reason = check_move(board, from_tube, to_tube)
    if reason is not None:
        raise ValueError(f"Illegal move {from_tube} -> {to_tube}: {reason.value}")

    moved = min(count_top_run(board, from_tube), board.free_space(to_tube))
    source = board[from_tube]
    board[to_tube].extend(source[-moved:])
    del source[-moved:]
    return MoveRecord(from_tube, to_tube, moved)


def undo_move(board: Board, record: MoveRecord) -> None:
    """Move record.count pieces from the top of the target back to the source."""
    target = board[record.to_tube]
    board[record.from_tube].extend(target[-record.count:])
    del target[-record.count:]


def valid_moves(board: Board) -> Iterator[Tuple[int, int]]:
    """All legal (from, to) pairs, scanning sources then targets in index order."""
    for from_tube in range(board.num_tubes):
        for to_tube in range(board.num_tubes):
            if is_valid_move(board, from_tube, to_tube):
                yield from_tube, to_tube


def first_valid_move(board: Board) -> Optional[Tuple[int, int]]:
    """The first legal move in scan order, or None if the board is stuck."""
    return next(valid_moves(board), None)
