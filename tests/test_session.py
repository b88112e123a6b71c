"""
Tests for the game session state machine.
"""

import logging

import pytest

from ball_sort.sort_core.board import Board
from ball_sort.sort_core.collaborators import (
    AchievementReporter,
    CompletionReport,
    Cue,
    CuePlayer,
    MemoryProgressStore,
    ProgressSnapshot,
    ProgressStore,
    RecordingCuePlayer,
)
from ball_sort.sort_core.config_loader import load_config
from ball_sort.sort_core.events import (
    LevelCompleted,
    MoveCompleted,
    MoveRejected,
    SessionEvent,
    StateChanged,
    TimeUpdated,
)
from ball_sort.sort_core.generator import PuzzleGenerator
from ball_sort.sort_core.moves import RejectReason
from ball_sort.sort_core.session import GameSession
from ball_sort.sort_core.state_snapshot import SessionStatus
from ball_sort.sort_core.timer import ManualTickSource

# Three colors, four pieces each, in six-slot tubes with two spares.
LAYOUT = [[0, 0, 0, 1], [1, 1, 1, 0], [2, 2, 2, 2], [], []]
SOLUTION = [(0, 3), (1, 0), (3, 1)]


class FixedGenerator(PuzzleGenerator):
    """Deals LAYOUT for every level."""

    def generate(self, level):
        return Board.from_colors(LAYOUT, capacity=6, pieces_per_color=4, level=level, config=self._config)


class RecordingReporter(AchievementReporter):
    def __init__(self):
        self.reports = []

    def report_level_completion(self, report):
        self.reports.append(report)


class RecordingTickSource(ManualTickSource):
    """Manual source that remembers every callback it was given."""

    def __init__(self):
        super().__init__()
        self.callbacks = []

    def start(self, callback):
        self.callbacks.append(callback)
        super().start(callback)


class ExplodingStore(ProgressStore):
    def save_level_result(self, level, moves, time_remaining, stars):
        raise RuntimeError("disk on fire")

    def load_progress(self):
        raise RuntimeError("disk on fire")


class ExplodingCues(CuePlayer):
    def play_cue(self, cue):
        raise RuntimeError("no speakers")


class ExplodingReporter(AchievementReporter):
    def report_level_completion(self, report):
        raise RuntimeError("offline")


class RefusingStore(MemoryProgressStore):
    def save_level_result(self, level, moves, time_remaining, stars):
        return False


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def store(config):
    return MemoryProgressStore(config)


@pytest.fixture
def cues():
    return RecordingCuePlayer()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def ticks():
    return RecordingTickSource()


@pytest.fixture
def session(config, store, cues, reporter, ticks):
    session = GameSession(
        config=config,
        progress_store=store,
        achievements=reporter,
        cues=cues,
        tick_source=ticks,
        generator=FixedGenerator(config)
    )
    session.start()
    yield session
    session.close()


@pytest.fixture
def events(session):
    received = []
    session.events.subscribe(SessionEvent, received.append)
    return received


def play_solution(session):
    for from_tube, to_tube in SOLUTION:
        assert session.select_tube(from_tube)
        assert session.select_tube(to_tube)


class TestStart:
    """Test session startup."""

    def test_fresh_start(self, session, ticks):
        assert session.level == 1
        assert session.status == SessionStatus.PLAYING
        assert session.moves == 0
        assert session.time_remaining == 60
        assert session.board.color_layout() == tuple(tuple(t) for t in LAYOUT)
        assert ticks.running

    def test_constructor_does_not_start_timer(self, config):
        ticks = ManualTickSource()
        GameSession(config=config, seed=1, tick_source=ticks)
        assert not ticks.running

    def test_resumes_saved_progress(self, config, store):
        """Saved current level is used, capped by the max reached."""
        store.progress = ProgressSnapshot(current_level=7, max_level_reached=5)
        session = GameSession(config=config, progress_store=store, generator=FixedGenerator(config))
        session.start()
        assert session.level == 5
        assert session.max_level_reached == 5

    def test_seeded_sessions_match(self, config):
        a = GameSession(config=config, seed=99, level=120)
        b = GameSession(config=config, seed=99, level=120)
        assert a.board == b.board


class TestSelection:
    """Test tap handling."""

    def test_select_and_deselect(self, session, cues, events):
        assert session.select_tube(0)
        assert session.selected_tube == 0
        assert session.select_tube(0)
        assert session.selected_tube is None
        assert cues.cues[-2:] == [Cue.SELECT, Cue.DESELECT]
        assert [type(e) for e in events] == [StateChanged, StateChanged]

    def test_select_empty_tube(self, session, cues, events):
        """An empty tube cannot be selected and nothing is emitted."""
        assert not session.select_tube(3)
        assert session.selected_tube is None
        assert cues.cues[-1] == Cue.ERROR
        assert events == []

    def test_select_missing_tube(self, session, cues):
        assert not session.select_tube(99)
        assert cues.cues[-1] == Cue.ERROR

    def test_tap_moves(self, session, cues, events):
        """Selecting a source then a target applies one move."""
        session.select_tube(0)
        assert session.select_tube(3)

        assert session.moves == 1
        assert session.selected_tube is None
        assert session.board.color_layout()[3] == (1,)
        assert cues.cues[-1] == Cue.TRANSFER
        assert MoveCompleted(0, 3, 1) in events

    def test_rejected_move_keeps_selection(self, session, cues, events):
        session.select_tube(0)
        assert not session.select_tube(2)

        assert session.selected_tube == 0
        assert session.moves == 0
        assert cues.cues[-1] == Cue.ERROR
        assert events[-1] == MoveRejected(0, 2, RejectReason.COLOR_MISMATCH)

    def test_direct_move(self, session):
        assert session.move(0, 4)
        assert not session.move(0, 0)
        assert session.moves == 1

    def test_snapshot_reflects_state(self, session, config):
        session.select_tube(0)
        snap = session.snapshot()

        assert snap.selected_tube == 0
        assert snap.tubes[0] == (0, 0, 0, 1)
        assert snap.board_array.shape == (14, config.rules.tube_capacity)
        assert list(snap.board_array[0]) == [0, 0, 0, 1, -1, -1]
        assert int(snap.tube_mask.sum()) == 5
        assert snap.to_dict()["status"] == "playing"
        assert len(snap.expressions) == 3


class TestCompletion:
    """Test solving a level."""

    def test_level_completes(self, session, store, reporter, cues):
        play_solution(session)

        assert session.status == SessionStatus.COMPLETED
        assert session.moves == 3
        assert session.max_level_reached == 2
        assert session.last_result.stars == 3
        assert cues.cues[-1] == Cue.VICTORY
        assert store.results == [(1, 3, 60, 3)]
        assert reporter.reports == [CompletionReport(level=1, moves=3, time_remaining=60, is_perfect=True)]

    def test_completion_event_order(self, session, events):
        """The final move reports the move, then the level, then the state."""
        session.move(*SOLUTION[0])
        session.move(*SOLUTION[1])
        del events[:]
        session.move(*SOLUTION[2])

        assert [type(e) for e in events] == [MoveCompleted, LevelCompleted, StateChanged]
        assert events[1] == LevelCompleted(level=1, moves=3, time_remaining=60, stars=3)
        assert events[2].snapshot.status == SessionStatus.COMPLETED

    def test_timer_stops_on_completion(self, session, ticks):
        play_solution(session)
        assert not ticks.running
        assert session.time_remaining == 60

    def test_actions_refused_after_completion(self, session, events):
        play_solution(session)

        assert not session.select_tube(0)
        assert not session.undo()
        assert session.hint() is None
        assert not session.move(2, 3)
        assert events[-1] == MoveRejected(2, 3, RejectReason.NOT_PLAYING)

    def test_next_level(self, session, ticks):
        assert not session.next_level()
        play_solution(session)

        assert session.next_level()
        assert session.level == 2
        assert session.moves == 0
        assert session.status == SessionStatus.PLAYING
        assert ticks.running

    def test_next_level_capped(self, config):
        session = GameSession(config=config, level=1000, generator=FixedGenerator(config))
        session.generate_level(1000)
        play_solution(session)
        assert session.next_level()
        assert session.level == 1000

    def test_restart(self, session):
        session.move(0, 3)
        session.restart()
        assert session.moves == 0
        assert session.board.color_layout()[3] == ()


class TestUndoAndHints:
    """Test undo and hint budget."""

    def test_undo_round_trip(self, session):
        before = session.board.color_layout()
        session.move(0, 3)
        assert session.can_undo

        assert session.undo()
        assert session.board.color_layout() == before
        assert session.moves == 0
        assert not session.can_undo
        assert not session.undo()

    def test_undo_clears_selection(self, session, cues):
        session.move(0, 3)
        session.select_tube(1)
        session.undo()
        assert session.selected_tube is None
        assert cues.cues[-1] == Cue.DESELECT

    def test_hint(self, session):
        assert session.hint() == (0, 3)
        assert session.hints_used == 1
        assert session.hints_remaining == 2
        assert session.moves == 0

    def test_hint_budget(self, session):
        for _ in range(3):
            assert session.hint() is not None
        assert session.hint() is None
        assert session.hints_used == 3

    def test_hints_reset_on_new_level(self, session):
        session.hint()
        session.restart()
        assert session.hints_used == 0


class TestTimer:
    """Test the countdown."""

    def test_tick_counts_down(self, session, ticks, events):
        ticks.fire(5)
        assert session.time_remaining == 55
        assert events[-1] == TimeUpdated(55, 60)

    def test_warning_cues(self, session, ticks, cues):
        ticks.fire(49)
        assert Cue.WARNING not in cues.cues
        ticks.fire(1)
        assert cues.cues[-1] == Cue.WARNING

    def test_time_up(self, session, ticks, cues, events):
        delivered = ticks.fire(100)

        assert delivered == 60
        assert session.time_remaining == 0
        assert session.status == SessionStatus.TIME_UP
        assert session.is_over
        assert cues.cues.count(Cue.WARNING) == 10
        assert cues.cues[-1] == Cue.ERROR
        assert sum(isinstance(e, TimeUpdated) for e in events) == 60
        assert not session.select_tube(0)

    def test_ticks_ignored_after_time_up(self, session, ticks):
        ticks.fire(60)
        session.tick()
        assert session.time_remaining == 0

    def test_pause_and_resume(self, session, ticks):
        ticks.fire(10)
        assert session.pause()
        assert session.status == SessionStatus.PAUSED
        assert ticks.fire(5) == 0
        session.tick()
        assert session.time_remaining == 50
        assert not session.select_tube(0)

        assert session.resume()
        ticks.fire(1)
        assert session.time_remaining == 49
        assert not session.resume()

    def test_stale_tick_ignored(self, session, ticks):
        """A tick from a timer that was replaced does nothing."""
        old_callback = ticks.callbacks[-1]
        session.restart()
        old_callback()
        assert session.time_remaining == 60

    def test_extra_time(self, session, events):
        assert session.add_extra_time(15)
        assert session.time_remaining == 75
        assert events[-1] == TimeUpdated(75, 60)
        assert not session.add_extra_time(0)

    def test_close_stops_timer(self, session, ticks):
        session.close()
        assert not session.timer_running
        assert ticks.fire() == 0


class TestLevelNavigation:
    """Test level jumps and progress reset."""

    def test_locked_level_rejected(self, session):
        before = session.board.color_layout()
        assert not session.go_to_level(2)
        assert not session.go_to_level(0)
        assert not session.go_to_level(5000)
        assert session.level == 1
        assert session.board.color_layout() == before

    def test_unlocked_level(self, session):
        play_solution(session)
        assert session.go_to_level(2)
        assert session.level == 2
        assert session.go_to_level(1)

    def test_replay_resumes_at_furthest_level(self, config, store):
        """Replaying an old level does not move the next start backwards."""
        store.progress = ProgressSnapshot(current_level=10, max_level_reached=10)
        session = GameSession(config=config, progress_store=store, generator=FixedGenerator(config))
        session.start()
        assert session.go_to_level(1)
        play_solution(session)

        resumed = GameSession(config=config, progress_store=store, generator=FixedGenerator(config))
        resumed.start()
        assert resumed.level == 10

    def test_reset_progress(self, session, store):
        play_solution(session)
        assert session.reset_progress()
        assert session.level == 1
        assert session.max_level_reached == 1
        assert store.load_progress() == ProgressSnapshot()


class TestCollaboratorFailures:
    """Collaborator errors never reach the player."""

    def test_failing_collaborators(self, config, caplog):
        session = GameSession(
            config=config,
            progress_store=ExplodingStore(),
            achievements=ExplodingReporter(),
            cues=ExplodingCues(),
            generator=FixedGenerator(config)
        )
        with caplog.at_level(logging.WARNING):
            session.start()
            play_solution(session)

        assert session.status == SessionStatus.COMPLETED
        assert session.max_level_reached == 2
        assert "Collaborator failed" in caplog.text

    def test_refused_save_logged(self, config, caplog):
        session = GameSession(config=config, progress_store=RefusingStore(config), generator=FixedGenerator(config))
        session.start()
        with caplog.at_level(logging.WARNING):
            play_solution(session)
        assert "did not save" in caplog.text

    def test_listener_sees_consistent_state(self, session):
        """StateChanged snapshots carry the move count of the change."""
        seen = []
        session.events.subscribe(StateChanged, lambda e: seen.append(e.snapshot.moves))
        session.move(0, 3)
        session.undo()
        assert seen == [1, 0]
