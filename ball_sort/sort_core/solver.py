"""
Solver
======

Depth-first search for a move sequence that solves a board.

Generated boards are shuffles of a solved board and are expected to be
solvable; the solver lets tests and tools check that claim on real boards.
States are deduplicated on the multiset of tube contents, since tube order
does not affect solvability.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ball_sort.sort_core.board import Board
from ball_sort.sort_core.moves import MoveRecord, apply_move, undo_move, valid_moves
from ball_sort.sort_core.scoring import is_complete

DEFAULT_MAX_STATES = 200_000


@dataclass
class SolveResult:
    """
    Outcome of a search.

    solvable is None when the state budget ran out before an answer.
    """
    solvable: Optional[bool]
    moves: List[Tuple[int, int]] = field(default_factory=list)
    states_explored: int = 0


def canonical_state(board: Board) -> Tuple[Tuple[int, ...], ...]:
    """Board contents with tube order erased."""
    return tuple(sorted(board.color_layout()))


def _candidate_moves(board: Board) -> List[Tuple[int, int]]:
    """Legal moves, stacking onto matching colors before spilling into empty tubes."""
    moves = list(valid_moves(board))
    moves.sort(key=lambda m: board.is_empty(m[1]))
    return moves


def solve(board: Board, max_states: int = DEFAULT_MAX_STATES) -> SolveResult:
    """
    Search for a solution without modifying the given board.

    Args:
        board: Board to solve.
        max_states: Give up after visiting this many distinct states.

    Returns:
        SolveResult with the move list when solvable.
    """
    work = board.copy()
    if is_complete(work):
        return SolveResult(True, [], 1)

    seen = {canonical_state(work)}
    path: List[MoveRecord] = []
    frontier = [iter(_candidate_moves(work))]

    while frontier:
        step = next(frontier[-1], None)
        if step is None:
            # Exhausted this state: backtrack to its parent
            frontier.pop()
            if path:
                undo_move(work, path.pop())
            continue

        record = apply_move(work, *step)
        key = canonical_state(work)
        if key in seen:
            undo_move(work, record)
            continue

        seen.add(key)
        path.append(record)

        if is_complete(work):
            return SolveResult(True, [(r.from_tube, r.to_tube) for r in path], len(seen))
        if len(seen) >= max_states:
            return SolveResult(None, [], len(seen))

        frontier.append(iter(_candidate_moves(work)))

    return SolveResult(False, [], len(seen))
