"""
Sort Core - The rule engine behind the ball sort puzzle.

Main exports:
- GameSession: Session state machine (selection, moves, undo, hints, timer)
- PuzzleGenerator: Shuffled, dealt boards per level
- config_for: Level difficulty descriptor
- BallSortEnv: Gymnasium environment over one level
- JsonProgressStore: File-backed progress persistence
- GameConfig: Configuration loaded from game_config.yaml
"""

from ball_sort.sort_core.config_loader import GameConfig, load_config, get_config
from ball_sort.sort_core.expressions import Expression, expression_for, level_expressions
from ball_sort.sort_core.levels import LevelConfig, LevelOutOfRangeError, config_for
from ball_sort.sort_core.board import Board, Piece
from ball_sort.sort_core.generator import PuzzleGenerator, generate
from ball_sort.sort_core.moves import (
    MoveRecord,
    RejectReason,
    apply_move,
    check_move,
    count_top_run,
    is_valid_move,
    undo_move,
)
from ball_sort.sort_core.scoring import LevelResult, is_complete, stars
from ball_sort.sort_core.events import (
    EventEmitter,
    LevelCompleted,
    MoveCompleted,
    MoveRejected,
    SessionEvent,
    StateChanged,
    TimeUpdated,
)
from ball_sort.sort_core.collaborators import (
    AchievementReporter,
    CompletionReport,
    Cue,
    CuePlayer,
    ProgressSnapshot,
    ProgressStore,
)
from ball_sort.sort_core.progress_store import JsonProgressStore
from ball_sort.sort_core.timer import ManualTickSource, ThreadedTickSource, TickSource
from ball_sort.sort_core.state_snapshot import SessionSnapshot, SessionStatus
from ball_sort.sort_core.session import GameSession
from ball_sort.sort_core.solver import SolveResult, solve
from ball_sort.sort_core.env_gym import BallSortEnv

__all__ = [
    "GameConfig",
    "load_config",
    "get_config",
    "Expression",
    "expression_for",
    "level_expressions",
    "LevelConfig",
    "LevelOutOfRangeError",
    "config_for",
    "Board",
    "Piece",
    "PuzzleGenerator",
    "generate",
    "MoveRecord",
    "RejectReason",
    "apply_move",
    "check_move",
    "count_top_run",
    "is_valid_move",
    "undo_move",
    "LevelResult",
    "is_complete",
    "stars",
    "EventEmitter",
    "LevelCompleted",
    "MoveCompleted",
    "MoveRejected",
    "SessionEvent",
    "StateChanged",
    "TimeUpdated",
    "AchievementReporter",
    "CompletionReport",
    "Cue",
    "CuePlayer",
    "ProgressSnapshot",
    "ProgressStore",
    "JsonProgressStore",
    "ManualTickSource",
    "ThreadedTickSource",
    "TickSource",
    "SessionSnapshot",
    "SessionStatus",
    "GameSession",
    "SolveResult",
    "solve",
    "BallSortEnv",
]
