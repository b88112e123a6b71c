"""
Tests for puzzle generation.
"""

import pytest

from ball_sort.sort_core.config_loader import load_config
from ball_sort.sort_core.expressions import expression_for
from ball_sort.sort_core.generator import PuzzleGenerator, generate
from ball_sort.sort_core.levels import config_for


@pytest.fixture
def config():
    return load_config()


class TestGeneratedBoards:
    """Test structural invariants of generated boards."""

    @pytest.mark.parametrize("level", [1, 21, 41, 101, 201, 501, 1000])
    def test_board_shape(self, config, level):
        """Filled tubes hold one stack's worth each, empty tubes follow."""
        lc = config_for(level, config)
        board = PuzzleGenerator(config, seed=level).generate(level)

        assert board.num_tubes == lc.total_tubes
        assert board.capacity == lc.tube_capacity
        for i in range(lc.filled_tubes):
            assert len(board[i]) == lc.pieces_per_color
        for i in range(lc.filled_tubes, lc.total_tubes):
            assert board.is_empty(i)

    @pytest.mark.parametrize("level", [1, 150, 700])
    def test_color_counts(self, config, level):
        """Each color appears exactly pieces_per_color times."""
        lc = config_for(level, config)
        board = PuzzleGenerator(config, seed=7).generate(level)

        counts = board.color_counts()
        assert sorted(counts) == list(range(lc.color_count))
        assert all(n == lc.pieces_per_color for n in counts.values())
        assert board.total_pieces == lc.total_pieces

    def test_expressions_attached(self, config):
        """Every piece carries its (level, color) expression."""
        board = PuzzleGenerator(config, seed=3).generate(321)
        for tube in board.tubes:
            for piece in tube:
                assert piece.expression == expression_for(321, piece.color_index, config)

    def test_out_of_range_level_clamped(self, config):
        """Generating past the maximum uses the last level."""
        board = PuzzleGenerator(config, seed=1).generate(5000)
        assert board.num_tubes == config_for(1000, config).total_tubes


class TestDeterminism:
    """Test seeding behavior."""

    def test_same_seed_same_board(self, config):
        """Same seed and level give the same layout."""
        a = PuzzleGenerator(config, seed=42).generate(300)
        b = PuzzleGenerator(config, seed=42).generate(300)
        assert a == b

    def test_different_seeds_differ(self, config):
        """Different seeds give different layouts for a large level."""
        a = PuzzleGenerator(config, seed=1).generate(800)
        b = PuzzleGenerator(config, seed=2).generate(800)
        assert a != b

    def test_reset_replays_sequence(self, config):
        """Reseeding restarts the board sequence."""
        gen = PuzzleGenerator(config, seed=9)
        first = [gen.generate(50) for _ in range(3)]
        gen.reset(9)
        second = [gen.generate(50) for _ in range(3)]
        assert first == second

    def test_module_generate(self, config):
        """The module helper matches a fresh generator."""
        assert generate(60, config, seed=5) == PuzzleGenerator(config, seed=5).generate(60)
