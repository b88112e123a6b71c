"""
Game Session
============

Main game orchestrator: owns the board and all mutable session state, routes
player actions through the move rules, runs the countdown and reports
results to the injected collaborators.

Status transitions:
- PLAYING -> PAUSED (pause), PAUSED -> PLAYING (resume)
- PLAYING -> COMPLETED when a move solves the board
- PLAYING -> TIME_UP when the countdown reaches zero
- any -> PLAYING on restart or a level change

Invalid actions never raise: they return False (or None for hints) and, for
rejected moves, emit a MoveRejected event.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from ball_sort.sort_core.board import Board
from ball_sort.sort_core.collaborators import (
    AchievementReporter,
    CompletionReport,
    Cue,
    CuePlayer,
    NullAchievementReporter,
    NullCuePlayer,
    NullProgressStore,
    ProgressSnapshot,
    ProgressStore,
)
from ball_sort.sort_core.config_loader import GameConfig, get_config
from ball_sort.sort_core.events import (
    EventEmitter,
    LevelCompleted,
    MoveCompleted,
    MoveRejected,
    StateChanged,
    TimeUpdated,
)
from ball_sort.sort_core.generator import PuzzleGenerator
from ball_sort.sort_core.levels import LevelConfig, clamp_level, config_for, is_playable_level
from ball_sort.sort_core.moves import (
    MoveRecord,
    RejectReason,
    apply_move,
    check_move,
    first_valid_move,
    undo_move,
)
from ball_sort.sort_core.scoring import LevelResult, is_complete, level_result
from ball_sort.sort_core.state_snapshot import SessionSnapshot, SessionStatus, SnapshotBuilder
from ball_sort.sort_core.timer import ManualTickSource, TickSource

logger = logging.getLogger(__name__)


def _synchronized(method):
    """Run a public entry point under the session lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class GameSession:
    """
    Single-owner game session.

    Orchestrates:
    - Puzzle generation per level
    - Tube selection and move application
    - Undo history and hints
    - Countdown timer
    - Completion, star rating and collaborator call-outs
    - Event emission

    Ticks arrive through the injected TickSource. The default
    ManualTickSource only ticks when driven; pass a ThreadedTickSource for a
    wall-clock countdown.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        level: int = 1,
        progress_store: Optional[ProgressStore] = None,
        achievements: Optional[AchievementReporter] = None,
        cues: Optional[CuePlayer] = None,
        tick_source: Optional[TickSource] = None,
        events: Optional[EventEmitter] = None,
        generator: Optional[PuzzleGenerator] = None
    ):
        """
        Initialize session and generate the starting level (timer stopped).

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for board generation. Random if None.
            level: Starting level, clamped into range.
            progress_store: Persistence collaborator.
            achievements: Achievement/leaderboard collaborator.
            cues: Audio/feedback collaborator.
            tick_source: Countdown tick source.
            events: Event emitter. A new one is created if None.
            generator: Board generator. Built from config and seed if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._lock = threading.RLock()

        # Collaborators
        self._progress_store = progress_store or NullProgressStore()
        self._achievements = achievements or NullAchievementReporter()
        self._cues = cues or NullCuePlayer()
        self._tick_source = tick_source or ManualTickSource()
        self._events = events or EventEmitter()

        # Subsystems
        self._generator = generator or PuzzleGenerator(config, seed)
        self._snapshot_builder = SnapshotBuilder(config)

        # Progress
        self._level = clamp_level(level, config)
        self._max_level_reached = self._level
        self._last_result: Optional[LevelResult] = None

        # Level state
        self._level_config: LevelConfig = config_for(self._level, config)
        self._board: Board = self._generator.generate(self._level)
        self._moves: int = 0
        self._selected: Optional[int] = None
        self._history: List[MoveRecord] = []
        self._hints_used: int = 0
        self._time_remaining: int = self._level_config.time_limit_seconds
        self._status = SessionStatus.PLAYING
        self._timer_generation: int = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def events(self) -> EventEmitter:
        """Emitter for StateChanged, MoveCompleted, MoveRejected, LevelCompleted, TimeUpdated."""
        return self._events

    @property
    def board(self) -> Board:
        """The live board. Read only: mutate through session methods."""
        return self._board

    @property
    def level(self) -> int:
        return self._level

    @property
    def level_config(self) -> LevelConfig:
        return self._level_config

    @property
    def max_level_reached(self) -> int:
        return self._max_level_reached

    @property
    def moves(self) -> int:
        return self._moves

    @property
    def selected_tube(self) -> Optional[int]:
        return self._selected

    @property
    def move_history(self) -> Tuple[MoveRecord, ...]:
        return tuple(self._history)

    @property
    def can_undo(self) -> bool:
        return self._status == SessionStatus.PLAYING and bool(self._history)

    @property
    def hints_used(self) -> int:
        return self._hints_used

    @property
    def hints_remaining(self) -> int:
        return max(0, self._config.rules.max_hints - self._hints_used)

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def time_limit(self) -> int:
        return self._level_config.time_limit_seconds

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_over(self) -> bool:
        """True once the level is completed or the time is up."""
        return self._status in (SessionStatus.COMPLETED, SessionStatus.TIME_UP)

    @property
    def last_result(self) -> Optional[LevelResult]:
        """Result of the most recently completed level."""
        return self._last_result

    @property
    def timer_running(self) -> bool:
        return self._tick_source.running

    def snapshot(self) -> SessionSnapshot:
        """Build an immutable view of the current state."""
        return self._snapshot_builder.build(
            board=self._board,
            level_config=self._level_config,
            status=self._status,
            moves=self._moves,
            selected_tube=self._selected,
            hints_used=self._hints_used,
            time_remaining=self._time_remaining,
            max_level_reached=self._max_level_reached,
            can_undo=self.can_undo
        )

    # ------------------------------------------------------------------
    # Level lifecycle
    # ------------------------------------------------------------------

    @_synchronized
    def start(self) -> SessionSnapshot:
        """
        Load saved progress, generate the current level and start the timer.

        A failing progress store leaves the in-memory progress untouched.
        """
        progress = self._call_collaborator("load progress", self._progress_store.load_progress)
        if isinstance(progress, ProgressSnapshot):
            self._max_level_reached = clamp_level(progress.max_level_reached, self._config)
            self._level = min(clamp_level(progress.current_level, self._config), self._max_level_reached)

        self.generate_level(self._level)
        return self.snapshot()

    @_synchronized
    def generate_level(self, level: int) -> None:
        """
        Replace the session with a fresh board for a level and start the timer.

        Args:
            level: Level number, clamped into range.
        """
        self._stop_timer()

        self._level = clamp_level(level, self._config)
        self._level_config = config_for(self._level, self._config)
        self._board = self._generator.generate(self._level)
        self._moves = 0
        self._selected = None
        self._history = []
        self._hints_used = 0
        self._time_remaining = self._level_config.time_limit_seconds
        self._status = SessionStatus.PLAYING

        self._start_timer()
        self._emit_state()
        logger.debug("Session at level %d (%s)", self._level, self._level_config.difficulty_name)

    @_synchronized
    def restart(self) -> None:
        """Regenerate the current level from any status."""
        self.generate_level(self._level)

    @_synchronized
    def next_level(self) -> bool:
        """
        Advance after a completed level.

        Returns:
            False unless the current level is completed.
        """
        if self._status != SessionStatus.COMPLETED:
            return False
        self.generate_level(min(self._level + 1, self._config.rules.max_level))
        return True

    @_synchronized
    def go_to_level(self, level: int) -> bool:
        """
        Jump to an unlocked level.

        Returns:
            False, without touching the session, if the level is locked or
            outside the supported range.
        """
        if not is_playable_level(level, self._max_level_reached, self._config):
            logger.info("Rejected jump to level %s (max reached %d)", level, self._max_level_reached)
            return False
        self.generate_level(level)
        return True

    @_synchronized
    def reset_progress(self) -> bool:
        """Clear saved progress and return to level 1."""
        cleared = self._call_collaborator("clear progress", self._progress_store.clear_progress)
        self._max_level_reached = 1
        self._last_result = None
        self.generate_level(1)
        return bool(cleared)

    @_synchronized
    def close(self) -> None:
        """Stop the timer. The session accepts no further ticks."""
        self._stop_timer()

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    @_synchronized
    def select_tube(self, tube_index: int) -> bool:
        """
        Handle a tap on a tube.

        With nothing selected, a non-empty tube becomes selected. With a
        selection, tapping it again deselects; tapping another tube attempts
        the move, keeping the selection if the move is rejected.

        Returns:
            True if the tap changed the session.
        """
        if self._status != SessionStatus.PLAYING:
            return False

        if self._selected is None:
            if self._board.has_tube(tube_index) and not self._board.is_empty(tube_index):
                self._selected = tube_index
                self._play(Cue.SELECT)
                self._emit_state()
                return True
            self._play(Cue.ERROR)
            return False

        if tube_index == self._selected:
            self._selected = None
            self._play(Cue.DESELECT)
            self._emit_state()
            return True

        return self._attempt_move(self._selected, tube_index)

    @_synchronized
    def move(self, from_tube: int, to_tube: int) -> bool:
        """
        Attempt a move directly, bypassing selection.

        Returns:
            True if the move was applied.
        """
        if self._status != SessionStatus.PLAYING:
            self._events.emit(MoveRejected(from_tube, to_tube, RejectReason.NOT_PLAYING))
            return False
        return self._attempt_move(from_tube, to_tube)

    @_synchronized
    def undo(self) -> bool:
        """
        Revert the last move.

        Returns:
            False if there is nothing to undo or the level is not in play.
        """
        if self._status != SessionStatus.PLAYING or not self._history:
            return False

        record = self._history.pop()
        undo_move(self._board, record)
        self._moves = max(0, self._moves - 1)
        self._selected = None

        self._play(Cue.DESELECT)
        self._emit_state()
        return True

    @_synchronized
    def hint(self) -> Optional[Tuple[int, int]]:
        """
        Suggest the first legal move in tube order.

        Returns:
            (from_tube, to_tube), or None when hints are exhausted, no legal
            move exists or the level is not in play.
        """
        if self._status != SessionStatus.PLAYING:
            return None
        if self._hints_used >= self._config.rules.max_hints:
            return None

        suggestion = first_valid_move(self._board)
        if suggestion is None:
            return None

        self._hints_used += 1
        self._emit_state()
        return suggestion

    @_synchronized
    def pause(self) -> bool:
        if self._status != SessionStatus.PLAYING:
            return False
        self._stop_timer()
        self._status = SessionStatus.PAUSED
        self._emit_state()
        return True

    @_synchronized
    def resume(self) -> bool:
        """Resume from pause; the countdown continues where it stopped."""
        if self._status != SessionStatus.PAUSED:
            return False
        self._status = SessionStatus.PLAYING
        self._start_timer()
        self._emit_state()
        return True

    @_synchronized
    def add_extra_time(self, seconds: int) -> bool:
        """Extend the countdown of a level still in progress."""
        if seconds <= 0 or self._status not in (SessionStatus.PLAYING, SessionStatus.PAUSED):
            return False
        self._time_remaining += seconds
        self._events.emit(TimeUpdated(self._time_remaining, self.time_limit))
        return True

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    @_synchronized
    def tick(self) -> None:
        """
        Advance the countdown by one tick.

        Ignored unless playing. Reaching zero ends the level.
        """
        if self._status != SessionStatus.PLAYING:
            return

        self._time_remaining = max(0, self._time_remaining - 1)
        self._events.emit(TimeUpdated(self._time_remaining, self.time_limit))

        if self._time_remaining <= 0:
            self._time_up()
        elif self._time_remaining <= self._config.timer.warning_threshold:
            self._play(Cue.WARNING)

    def _start_timer(self) -> None:
        self._timer_generation += 1
        generation = self._timer_generation
        self._tick_source.start(lambda: self._on_tick(generation))

    def _stop_timer(self) -> None:
        # Bumping the generation invalidates any tick already in flight
        self._timer_generation += 1
        self._tick_source.stop()

    @_synchronized
    def _on_tick(self, generation: int) -> None:
        if generation != self._timer_generation:
            return
        self.tick()

    def _time_up(self) -> None:
        self._stop_timer()
        self._status = SessionStatus.TIME_UP
        self._selected = None
        self._play(Cue.ERROR)
        self._emit_state()
        logger.info("Time up on level %d after %d moves", self._level, self._moves)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _attempt_move(self, from_tube: int, to_tube: int) -> bool:
        reason = check_move(self._board, from_tube, to_tube)
        if reason is not None:
            self._play(Cue.ERROR)
            self._events.emit(MoveRejected(from_tube, to_tube, reason))
            return False

        record = apply_move(self._board, from_tube, to_tube)
        self._history.append(record)
        self._moves += 1
        self._selected = None

        self._play(Cue.TRANSFER)
        self._events.emit(MoveCompleted(record.from_tube, record.to_tube, record.count))

        if is_complete(self._board):
            self._complete_level()

        self._emit_state()
        return True

    def _complete_level(self) -> None:
        self._stop_timer()
        self._status = SessionStatus.COMPLETED

        result = level_result(self._moves, self._time_remaining, self._level, self._config)
        self._last_result = result

        reached = min(self._level + 1, self._config.rules.max_level)
        self._max_level_reached = max(self._max_level_reached, reached)

        saved = self._call_collaborator(
            "save level result",
            self._progress_store.save_level_result,
            result.level, result.moves, result.time_remaining, result.stars
        )
        if saved is False:
            logger.warning("Progress store did not save level %d", result.level)

        self._call_collaborator(
            "report level completion",
            self._achievements.report_level_completion,
            CompletionReport(
                level=result.level,
                moves=result.moves,
                time_remaining=result.time_remaining,
                is_perfect=result.is_perfect
            )
        )

        self._play(Cue.VICTORY)
        self._events.emit(LevelCompleted(result.level, result.moves, result.time_remaining, result.stars))
        logger.info(
            "Level %d completed in %d moves with %ds left: %d stars",
            result.level, result.moves, result.time_remaining, result.stars
        )

    def _emit_state(self) -> None:
        self._events.emit(StateChanged(self.snapshot()))

    def _play(self, cue: Cue) -> None:
        self._call_collaborator("play cue", self._cues.play_cue, cue)

    def _call_collaborator(self, description: str, fn: Callable[..., Any], *args) -> Any:
        """Call out to a collaborator; failures are logged and never reach the player."""
        try:
            return fn(*args)
        except Exception:
            logger.warning("Collaborator failed to %s", description, exc_info=True)
            return None
