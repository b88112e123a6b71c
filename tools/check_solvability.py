"""
Solvability Check
=================

Generates boards for sample levels in every difficulty band and runs the
solver on each, reporting how many were solved, proven stuck or left
undecided within the state budget.

Usage:
    python -m tools.check_solvability [--boards N] [--max-states S] [--seed SEED]
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from typing import List
import numpy as np

from ball_sort.sort_core.config_loader import GameConfig, load_config
from ball_sort.sort_core.generator import PuzzleGenerator
from ball_sort.sort_core.levels import config_for
from ball_sort.sort_core.solver import solve


@dataclass
class BandReport:
    """Solver outcomes for one sample level."""
    level: int
    difficulty_name: str
    solved: int
    unsolvable: int
    undecided: int
    solution_lengths: List[int]
    elapsed_seconds: float


def sample_levels(config: GameConfig) -> List[int]:
    """First level of every fixed band plus two expert levels."""
    levels = [band.first_level for band in config.bands]
    expert_start = config.expert_first_level
    if expert_start <= config.rules.max_level:
        levels.append(expert_start)
        levels.append(config.rules.max_level)
    return levels


def check_level(
    level: int,
    boards: int,
    max_states: int,
    seed: int,
    config: GameConfig
) -> BandReport:
    generator = PuzzleGenerator(config, seed=seed + level)
    solved = unsolvable = undecided = 0
    lengths: List[int] = []

    start = time.perf_counter()
    for _ in range(boards):
        result = solve(generator.generate(level), max_states=max_states)
        if result.solvable is True:
            solved += 1
            lengths.append(len(result.moves))
        elif result.solvable is False:
            unsolvable += 1
        else:
            undecided += 1
    elapsed = time.perf_counter() - start

    return BandReport(
        level=level,
        difficulty_name=config_for(level, config).difficulty_name,
        solved=solved,
        unsolvable=unsolvable,
        undecided=undecided,
        solution_lengths=lengths,
        elapsed_seconds=elapsed
    )


def main():
    parser = argparse.ArgumentParser(description="Check that generated boards are solvable")
    parser.add_argument("--boards", type=int, default=20, help="Boards per sample level")
    parser.add_argument("--max-states", type=int, default=200_000, help="Solver state budget per board")
    parser.add_argument("--seed", type=int, default=0, help="Base random seed")
    args = parser.parse_args()

    config = load_config()

    print("=" * 72)
    print("BALL SORT SOLVABILITY CHECK")
    print("=" * 72)
    print(f"{'Level':>6} {'Band':<10} {'Solved':>7} {'Stuck':>6} {'Unknown':>8} {'Mean len':>9} {'Time':>8}")
    print("-" * 72)

    any_stuck = False
    for level in sample_levels(config):
        report = check_level(level, args.boards, args.max_states, args.seed, config)
        mean_len = float(np.mean(report.solution_lengths)) if report.solution_lengths else float("nan")
        any_stuck = any_stuck or report.unsolvable > 0
        print(f"{report.level:>6} {report.difficulty_name:<10} {report.solved:>7} "
              f"{report.unsolvable:>6} {report.undecided:>8} {mean_len:>9.1f} "
              f"{report.elapsed_seconds:>7.2f}s")

    print("=" * 72)
    sys.exit(1 if any_stuck else 0)


if __name__ == "__main__":
    main()
