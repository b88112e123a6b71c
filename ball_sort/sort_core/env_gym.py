"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to one ball sort level.
Reward is always 0.0 - callers compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from ball_sort.sort_core.config_loader import GameConfig, load_config
from ball_sort.sort_core.events import MoveRejected
from ball_sort.sort_core.moves import is_valid_move
from ball_sort.sort_core.session import GameSession
from ball_sort.sort_core.state_snapshot import SessionStatus, max_tubes_for


class BallSortEnv(gym.Env):
    """
    Ball sort puzzle as a Gymnasium environment.

    Action Space:
        Discrete(MAX_TUBES * MAX_TUBES). Action a moves from tube
        a // MAX_TUBES to tube a % MAX_TUBES. Illegal moves leave the board
        unchanged and are reported in info["rejected"].

    Observation Space:
        Dict with the padded board, tube mask and session counters.

    Reward:
        Always 0.0.

    Episodes terminate when the board is solved and truncate after
    env.max_moves_per_episode actions. No countdown runs.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        level: int = 1,
        config_path: Optional[str] = None,
        debug: bool = False,
    ):
        """
        Initialize environment.

        Args:
            level: Level to play; reset(options={"level": n}) overrides it.
            config_path: Path to game_config.yaml. Uses default if None.
            debug: If True, prints every step.
        """
        super().__init__()

        self._config = load_config(config_path)
        self._level = level
        self._debug = debug
        self._max_tubes = max_tubes_for(self._config)
        self._steps = 0

        self._session = GameSession(config=self._config, level=level)

        self.action_space = spaces.Discrete(self._max_tubes * self._max_tubes)
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] BallSortEnv initialized")
            print(f"[DEBUG]   Level: {level}, max tubes: {self._max_tubes}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        rules = self._config.rules
        max_colors = max([b.colors for b in self._config.bands] + [self._config.expert.max_colors])
        int32_max = np.iinfo(np.int32).max

        return spaces.Dict({
            "board": spaces.Box(
                low=-1, high=max_colors - 1,
                shape=(self._max_tubes, rules.tube_capacity), dtype=np.int16
            ),
            "tube_mask": spaces.MultiBinary(self._max_tubes),
            "level": spaces.Box(low=1, high=rules.max_level, shape=(), dtype=np.int32),
            "moves": spaces.Box(low=0, high=int32_max, shape=(), dtype=np.int32),
            "selected_tube": spaces.Box(low=-1, high=self._max_tubes - 1, shape=(), dtype=np.int32),
            "hints_remaining": spaces.Box(low=0, high=rules.max_hints, shape=(), dtype=np.int32),
            "time_remaining": spaces.Box(low=0, high=int32_max, shape=(), dtype=np.int32),
        })

    def decode_action(self, action: int) -> Tuple[int, int]:
        """Split an action into (from_tube, to_tube)."""
        return divmod(int(action), self._max_tubes)

    def encode_action(self, from_tube: int, to_tube: int) -> int:
        return from_tube * self._max_tubes + to_tube

    def action_mask(self) -> np.ndarray:
        """Boolean mask of currently legal actions."""
        mask = np.zeros(self._max_tubes * self._max_tubes, dtype=bool)
        board = self._session.board
        for from_tube in range(board.num_tubes):
            for to_tube in range(board.num_tubes):
                if is_valid_move(board, from_tube, to_tube):
                    mask[self.encode_action(from_tube, to_tube)] = True
        return mask

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment with a new board.

        Args:
            seed: Random seed for reproducibility.
            options: {"level": n} to switch level.

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        if options and "level" in options:
            self._level = int(options["level"])

        board_seed = int(self.np_random.integers(0, 2**31 - 1))
        self._session = GameSession(config=self._config, seed=board_seed, level=self._level)
        self._steps = 0

        return self._session.snapshot().to_obs_dict(), self._get_info(rejected=None)

    def step(
        self,
        action: Union[int, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one move.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = int(action.item())

        from_tube, to_tube = self.decode_action(action)
        rejected = []
        listener = rejected.append

        self._session.events.subscribe(MoveRejected, listener)
        try:
            self._session.move(from_tube, to_tube)
        finally:
            self._session.events.unsubscribe(MoveRejected, listener)

        self._steps += 1
        terminated = self._session.status == SessionStatus.COMPLETED
        truncated = not terminated and self._steps >= self._config.env.max_moves_per_episode

        info = self._get_info(rejected=rejected[0].reason.value if rejected else None)

        if self._debug:
            print(f"[DEBUG] Step: {from_tube}->{to_tube}, moves={self._session.moves}, "
                  f"rejected={info['rejected']}")
            if terminated:
                print(f"[DEBUG] SOLVED in {self._session.moves} moves")

        return self._session.snapshot().to_obs_dict(), 0.0, terminated, truncated, info

    def _get_info(self, rejected: Optional[str]) -> Dict[str, Any]:
        result = self._session.last_result
        return {
            "level": self._session.level,
            "moves": self._session.moves,
            "status": self._session.status.value,
            "num_tubes": self._session.board.num_tubes,
            "stars": result.stars if result is not None and self._session.is_over else 0,
            "rejected": rejected,
            "action_mask": self.action_mask(),
        }

    @property
    def session(self) -> GameSession:
        """Access to underlying session (for debugging/tools)."""
        return self._session

    @property
    def config(self) -> GameConfig:
        return self._config
