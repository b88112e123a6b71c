"""
Collaborator Interfaces
=======================

Narrow interfaces the session calls out to: progress persistence,
achievement/leaderboard reporting and audio cues. Implementations are
injected into GameSession; the null variants do nothing.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ball_sort.sort_core.config_loader import GameConfig, get_config
from ball_sort.sort_core.levels import config_for


class Cue(str, Enum):
    SELECT = "select"
    DESELECT = "deselect"
    ERROR = "error"
    TRANSFER = "transfer"
    VICTORY = "victory"
    WARNING = "warning"


@dataclass
class TotalStats:
    """Lifetime totals across completed levels."""
    total_moves: int = 0
    total_time: int = 0
    levels_completed: int = 0


@dataclass
class ProgressSnapshot:
    """What the persistence layer knows about the player."""
    current_level: int = 1
    max_level_reached: int = 1
    total_stats: TotalStats = field(default_factory=TotalStats)


@dataclass(frozen=True)
class CompletionReport:
    """Payload for achievement and leaderboard reporting."""
    level: int
    moves: int
    time_remaining: int
    is_perfect: bool


class ProgressStore(metaclass=ABCMeta):
    """Persists level results and player progress."""

    @abstractmethod
    def save_level_result(self, level: int, moves: int, time_remaining: int, stars: int) -> bool:
        """Record a completed level. Returns False on failure."""
        raise NotImplementedError

    @abstractmethod
    def load_progress(self) -> ProgressSnapshot:
        raise NotImplementedError

    def clear_progress(self) -> bool:
        """Forget all progress. Stores without persistent state may keep the default."""
        return True


class AchievementReporter(metaclass=ABCMeta):
    @abstractmethod
    def report_level_completion(self, report: CompletionReport) -> None:
        raise NotImplementedError


class CuePlayer(metaclass=ABCMeta):
    @abstractmethod
    def play_cue(self, cue: Cue) -> None:
        raise NotImplementedError


class NullProgressStore(ProgressStore):
    """Keeps nothing between sessions."""

    def save_level_result(self, level: int, moves: int, time_remaining: int, stars: int) -> bool:
        return True

    def load_progress(self) -> ProgressSnapshot:
        return ProgressSnapshot()


class NullAchievementReporter(AchievementReporter):
    def report_level_completion(self, report: CompletionReport) -> None:
        pass


class NullCuePlayer(CuePlayer):
    def play_cue(self, cue: Cue) -> None:
        pass


class RecordingCuePlayer(CuePlayer):
    """Remembers every cue played, in order. Handy for headless drivers and tests."""

    def __init__(self):
        self.cues: List[Cue] = []

    def play_cue(self, cue: Cue) -> None:
        self.cues.append(cue)


class MemoryProgressStore(ProgressStore):
    """In-process store with the same bookkeeping as the JSON store."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._config = config
        self.progress = ProgressSnapshot()
        self.results: List[Tuple[int, int, int, int]] = []
        self.best: Dict[int, Tuple[int, int]] = {}

    def save_level_result(self, level: int, moves: int, time_remaining: int, stars: int) -> bool:
        self.results.append((level, moves, time_remaining, stars))
        reached = min(level + 1, self._config.rules.max_level)
        self.progress.max_level_reached = max(self.progress.max_level_reached, reached)
        self.progress.current_level = max(self.progress.current_level, reached)
        self.progress.total_stats.total_moves += moves
        self.progress.total_stats.total_time += time_used(level, time_remaining, self._config)
        self.progress.total_stats.levels_completed += 1
        best = self.best.get(level)
        if best is None or moves < best[0]:
            self.best[level] = (moves, time_remaining)
        return True

    def load_progress(self) -> ProgressSnapshot:
        return self.progress

    def clear_progress(self) -> bool:
        self.progress = ProgressSnapshot()
        self.results.clear()
        self.best.clear()
        return True


def time_used(level: int, time_remaining: int, config: Optional[GameConfig] = None) -> int:
    """Seconds spent on a level, from its limit and the time left."""
    return max(0, config_for(level, config).time_limit_seconds - time_remaining)
