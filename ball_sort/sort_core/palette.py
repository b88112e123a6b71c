"""
Color Palette
=============

Maps color indices to display colors. Purely cosmetic: game logic compares
color indices only.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ball_sort.sort_core.config_loader import GameConfig, ColorConfig, get_config


class Palette:
    """
    Indexed collection of piece colors loaded from config.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize palette from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.
        """
        if config is None:
            config = get_config()

        self._colors: Tuple[ColorConfig, ...] = config.palette

    def __len__(self) -> int:
        return len(self._colors)

    def __getitem__(self, color_index: int) -> ColorConfig:
        """Get palette entry by color index."""
        if 0 <= color_index < len(self._colors):
            return self._colors[color_index]
        raise IndexError(f"Color index {color_index} out of range [0, {len(self._colors)})")

    def __iter__(self):
        return iter(self._colors)

    def hex_for(self, color_index: int) -> str:
        return self[color_index].hex

    def name_for(self, color_index: int) -> str:
        return self[color_index].name

    def get_by_name(self, name: str) -> Optional[ColorConfig]:
        """Get palette entry by name (case-insensitive)."""
        name_lower = name.lower()
        for color in self._colors:
            if color.name.lower() == name_lower:
                return color
        return None


_cached_palette: Optional[Palette] = None


def get_palette(config: Optional[GameConfig] = None) -> Palette:
    """
    Get the palette singleton.

    Args:
        config: Optional config to use. If None, uses cached or default config.
    """
    global _cached_palette
    if _cached_palette is None or config is not None:
        _cached_palette = Palette(config)
    return _cached_palette
