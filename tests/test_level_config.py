"""
Tests for the level-to-difficulty mapping.
"""

import pytest

from ball_sort.sort_core.config_loader import load_config
from ball_sort.sort_core.levels import (
    LevelOutOfRangeError,
    clamp_level,
    config_for,
    is_playable_level,
)


@pytest.fixture
def config():
    return load_config()


class TestFixedBands:
    """Test the table-driven bands."""

    def test_level_one(self, config):
        """Level 1 is Very Easy: 3 colors, 5 tubes, 60 seconds."""
        lc = config_for(1, config)
        assert lc.difficulty_name == "Very Easy"
        assert lc.color_count == 3
        assert lc.total_tubes == 5
        assert lc.filled_tubes == 3
        assert lc.empty_tubes == 2
        assert lc.time_limit_seconds == 60

    def test_level_150(self, config):
        """Level 150 is Hard: 6 colors, 8 tubes, 120 seconds."""
        lc = config_for(150, config)
        assert lc.difficulty_name == "Hard"
        assert lc.color_count == 6
        assert lc.total_tubes == 8
        assert lc.time_limit_seconds == 120

    @pytest.mark.parametrize("level,colors,time_limit", [
        (20, 3, 60),
        (21, 4, 70),
        (40, 4, 70),
        (41, 5, 90),
        (100, 5, 90),
        (101, 6, 120),
        (200, 6, 120),
        (201, 7, 150),
        (500, 7, 150),
    ])
    def test_band_edges(self, config, level, colors, time_limit):
        """Band boundaries fall on the documented levels."""
        lc = config_for(level, config)
        assert lc.color_count == colors
        assert lc.time_limit_seconds == time_limit

    def test_tube_accounting(self, config):
        """Total tubes are filled plus empty for every sampled level."""
        for level in (1, 33, 77, 180, 321, 501, 999):
            lc = config_for(level, config)
            assert lc.total_tubes == lc.filled_tubes + lc.empty_tubes
            assert lc.filled_tubes == lc.color_count
            assert lc.total_pieces == lc.color_count * lc.pieces_per_color
            assert lc.tube_capacity == config.rules.tube_capacity


class TestExpertBand:
    """Test the open-ended formula past level 500."""

    @pytest.mark.parametrize("level,colors,time_limit", [
        (501, 8, 180),
        (549, 8, 180),
        (550, 8, 210),
        (600, 9, 240),
        (750, 10, 330),
        (1000, 12, 480),
    ])
    def test_expert_formula(self, config, level, colors, time_limit):
        """Colors grow every 100 levels, time every 50."""
        lc = config_for(level, config)
        assert lc.difficulty_name == "Expert"
        assert lc.color_count == colors
        assert lc.time_limit_seconds == time_limit

    def test_colors_capped(self, config):
        """Expert colors never exceed the cap."""
        for level in range(501, 1001, 37):
            assert config_for(level, config).color_count <= config.expert.max_colors


class TestOutOfRange:
    """Test handling of levels outside the table."""

    def test_low_levels_clamped(self, config):
        """Level 0 and negatives map to level 1."""
        assert config_for(0, config) == config_for(1, config)
        assert config_for(-7, config).level == 1

    def test_high_levels_clamped(self, config):
        """Levels past the maximum map to the maximum."""
        assert config_for(5000, config) == config_for(1000, config)

    def test_strict_raises(self, config):
        """Strict mode reports the bad level."""
        with pytest.raises(LevelOutOfRangeError) as excinfo:
            config_for(1001, config, strict=True)
        assert excinfo.value.level == 1001
        assert isinstance(excinfo.value, ValueError)

    def test_clamp_level(self, config):
        assert clamp_level(0, config) == 1
        assert clamp_level(42, config) == 42
        assert clamp_level(10**6, config) == 1000

    def test_idempotent(self, config):
        """Repeated calls give equal descriptors."""
        assert config_for(321, config) == config_for(321, config)


class TestPlayableLevel:
    """Test level unlocking."""

    def test_unlocked_levels(self, config):
        assert is_playable_level(1, 5, config)
        assert is_playable_level(5, 5, config)

    def test_locked_levels(self, config):
        assert not is_playable_level(6, 5, config)
        assert not is_playable_level(0, 5, config)
        assert not is_playable_level(1001, 2000, config)
