"""
JSON Progress Store
===================

File-backed progress persistence for the game session.

Usage:
    from ball_sort.sort_core import GameSession, JsonProgressStore

    store = JsonProgressStore("progress.json")
    session = GameSession(progress_store=store)
    session.start()

The file is one JSON document:

    {
      "version": 1,
      "current_level": 4,
      "max_level_reached": 4,
      "completed_levels": [1, 2, 3],
      "best_results": {"1": {"moves": 9, "time_remaining": 41, "stars": 3, "date": "..."}},
      "totals": {"total_moves": 31, "total_time": 88, "levels_completed": 3}
    }
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ball_sort.sort_core.collaborators import ProgressSnapshot, ProgressStore, TotalStats, time_used
from ball_sort.sort_core.config_loader import GameConfig, get_config

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _empty_document() -> Dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "current_level": 1,
        "max_level_reached": 1,
        "completed_levels": [],
        "best_results": {},
        "totals": {"total_moves": 0, "total_time": 0, "levels_completed": 0},
    }


def _normalize_document(data: Any) -> Dict[str, Any]:
    """
    Merge a parsed file over the defaults, coercing every field.

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Progress document must be an object, got {type(data).__name__}")

    document = _empty_document()
    try:
        for key in ("version", "current_level", "max_level_reached"):
            if key in data:
                document[key] = int(data[key])

        completed = data.get("completed_levels", [])
        if not isinstance(completed, list):
            raise ValueError("completed_levels must be a list")
        document["completed_levels"] = [int(level) for level in completed]

        best_results = data.get("best_results", {})
        if not isinstance(best_results, dict):
            raise ValueError("best_results must be an object")
        for key, best in best_results.items():
            if not isinstance(best, dict):
                raise ValueError(f"best_results[{key}] must be an object")
            document["best_results"][str(int(key))] = dict(best, moves=int(best["moves"]))

        totals = data.get("totals", {})
        if not isinstance(totals, dict):
            raise ValueError("totals must be an object")
        for key in document["totals"]:
            if key in totals:
                document["totals"][key] = int(totals[key])
    except (TypeError, KeyError) as e:
        raise ValueError(f"Malformed progress document: {e!r}") from e

    return document


class JsonProgressStore(ProgressStore):
    """
    Progress store backed by a single JSON file.

    Read failures fall back to fresh progress; write failures are logged
    and reported through the boolean return value.
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[GameConfig] = None
    ):
        """
        Args:
            path: Location of the progress file. Created on first save.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._path = Path(path)
        self._config = config

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return _empty_document()

        with open(self._path, "r") as f:
            data = json.load(f)

        return _normalize_document(data)

    def _write(self, document: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        # Write beside the target, then swap, so a crash never leaves half a file
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(document, f, indent=2)
        os.replace(tmp_path, self._path)

    def save_level_result(self, level: int, moves: int, time_remaining: int, stars: int) -> bool:
        """
        Record a completed level.

        Keeps the fewest-moves result per level and accumulates totals.

        Returns:
            True if the file was written.
        """
        try:
            document = self._read()
        except (OSError, ValueError):
            logger.warning("Progress file %s unreadable, starting fresh", self._path, exc_info=True)
            document = _empty_document()

        reached = min(level + 1, self._config.rules.max_level)
        document["max_level_reached"] = max(document["max_level_reached"], reached)
        document["current_level"] = max(document["current_level"], reached)

        if level not in document["completed_levels"]:
            document["completed_levels"].append(level)

        key = str(level)
        best = document["best_results"].get(key)
        if best is None or moves < best["moves"]:
            document["best_results"][key] = {
                "moves": moves,
                "time_remaining": time_remaining,
                "stars": stars,
                "date": datetime.now().isoformat(timespec="seconds"),
            }

        totals = document["totals"]
        totals["total_moves"] += moves
        totals["total_time"] += time_used(level, time_remaining, self._config)
        totals["levels_completed"] += 1

        try:
            self._write(document)
        except OSError:
            logger.warning("Could not write progress file %s", self._path, exc_info=True)
            return False
        return True

    def load_progress(self) -> ProgressSnapshot:
        """Load progress, or fresh progress if the file is missing or corrupt."""
        try:
            document = self._read()
        except (OSError, ValueError):
            logger.warning("Progress file %s unreadable, using defaults", self._path, exc_info=True)
            return ProgressSnapshot()

        totals = document["totals"]
        return ProgressSnapshot(
            current_level=document["current_level"],
            max_level_reached=document["max_level_reached"],
            total_stats=TotalStats(
                total_moves=totals["total_moves"],
                total_time=totals["total_time"],
                levels_completed=totals["levels_completed"]
            )
        )

    def clear_progress(self) -> bool:
        """Delete the progress file."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove progress file %s", self._path, exc_info=True)
            return False
        return True

    def best_result(self, level: int) -> Optional[Dict[str, Any]]:
        """Best stored result for a level, or None."""
        try:
            return self._read()["best_results"].get(str(level))
        except (OSError, ValueError):
            logger.warning("Progress file %s unreadable", self._path, exc_info=True)
            return None

    def completed_levels(self) -> List[int]:
        try:
            return sorted(self._read()["completed_levels"])
        except (OSError, ValueError):
            logger.warning("Progress file %s unreadable", self._path, exc_info=True)
            return []
