"""
Terminal Play Mode
==================

Play ball sort in a terminal. The countdown runs on a background thread.

Commands:
    <n>        Tap tube n (select, deselect or move)
    u          Undo
    h          Hint
    p / r      Pause / resume
    n          Next level (after completing one)
    g <level>  Go to an unlocked level
    x          Restart level
    q          Quit

Usage:
    python -m tools.play_terminal [--level N] [--seed SEED] [--progress FILE]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from ball_sort.sort_core.collaborators import Cue, CuePlayer
from ball_sort.sort_core.config_loader import load_config
from ball_sort.sort_core.events import LevelCompleted, MoveRejected, SessionEvent
from ball_sort.sort_core.palette import Palette, get_palette
from ball_sort.sort_core.progress_store import JsonProgressStore
from ball_sort.sort_core.session import GameSession
from ball_sort.sort_core.state_snapshot import SessionSnapshot
from ball_sort.sort_core.timer import ThreadedTickSource


class BellCuePlayer(CuePlayer):
    """Rings the terminal bell on errors and low-time warnings."""

    def play_cue(self, cue: Cue) -> None:
        if cue in (Cue.ERROR, Cue.WARNING):
            sys.stdout.write("\a")
            sys.stdout.flush()


def format_board(snapshot: SessionSnapshot, palette: Optional[Palette] = None) -> str:
    """Text view of the board, one row per tube, bottom piece first."""
    if palette is None:
        palette = get_palette()

    lines = [
        f"Level {snapshot.level} ({snapshot.difficulty_name})  "
        f"moves={snapshot.moves}  time={snapshot.time_remaining}/{snapshot.time_limit}s  "
        f"hints={snapshot.hints_remaining}  [{snapshot.status.value}]"
    ]
    for i, tube in enumerate(snapshot.tubes):
        marker = ">" if snapshot.selected_tube == i else " "
        slots = [palette.name_for(c)[:3] for c in tube] + ["..."] * (snapshot.capacity - len(tube))
        lines.append(f"{marker}{i:2d} | {' '.join(slots)} |")
    return "\n".join(lines)


def _print_event(event: SessionEvent) -> None:
    if isinstance(event, MoveRejected):
        print(f"  move {event.from_tube}->{event.to_tube} rejected: {event.reason.value}")
    elif isinstance(event, LevelCompleted):
        print(f"  Level {event.level} complete! {event.moves} moves, "
              f"{event.time_remaining}s left, {'*' * event.stars}")


def run(level: Optional[int], seed: Optional[int], progress_path: Optional[str]) -> int:
    config = load_config()
    store = JsonProgressStore(progress_path, config) if progress_path else None
    palette = Palette(config)

    session = GameSession(
        config=config,
        seed=seed,
        level=level or 1,
        progress_store=store,
        cues=BellCuePlayer(),
        tick_source=ThreadedTickSource(config.timer.tick_seconds),
    )
    session.events.subscribe(MoveRejected, _print_event)
    session.events.subscribe(LevelCompleted, _print_event)

    if store is not None and level is None:
        session.start()
    else:
        session.generate_level(session.level)

    try:
        while True:
            print(format_board(session.snapshot(), palette))
            try:
                command = input("> ").strip().lower()
            except EOFError:
                break

            if command == "q":
                break
            elif command == "u":
                if not session.undo():
                    print("  nothing to undo")
            elif command == "h":
                suggestion = session.hint()
                print(f"  try {suggestion[0]} -> {suggestion[1]}" if suggestion else "  no hint available")
            elif command == "p":
                session.pause()
            elif command == "r":
                session.resume()
            elif command == "n":
                if not session.next_level():
                    print("  finish this level first")
            elif command == "x":
                session.restart()
            elif command.startswith("g"):
                parts = command.split()
                if len(parts) != 2 or not parts[1].isdigit() or not session.go_to_level(int(parts[1])):
                    print(f"  can't go there (unlocked up to {session.max_level_reached})")
            elif command.isdigit():
                session.select_tube(int(command))
            elif command:
                print("  unknown command")
    finally:
        session.close()

    return 0


def main():
    parser = argparse.ArgumentParser(description="Play ball sort in the terminal")
    parser.add_argument("--level", type=int, default=None, help="Start level (default: saved or 1)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--progress", type=str, default=None, help="Progress JSON file")
    parser.add_argument("--verbose", action="store_true", help="Log session activity")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    sys.exit(run(args.level, args.seed, args.progress))


if __name__ == "__main__":
    main()
