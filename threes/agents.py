"""
Players and environments for Threes.

Every agent exposes the same contract: ``open_episode``, ``close_episode``,
``take_action`` and ``check_for_win``.  Which variant plays is picked once, at
construction, through :func:`create_agent`.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Type

import numpy as np

from threes.bitboard import can_merge
from threes.config import AgentConfig, ConfigError
from threes.game import (
    BAG_COPIES,
    BASE_TILES,
    ILLEGAL,
    Action,
    Board,
    Place,
    Slide,
    placement_positions,
)
from threes.ntuple import DEFAULT_PATTERNS, NTupleNetwork
from threes.reward_functions import get_reward_function
from threes.weights import WeightStore

__all__ = [
    "Agent",
    "RandomPlacer",
    "RandomSlider",
    "MergeLargerSlider",
    "NTupleSlider",
    "Trajectory",
    "create_agent",
]

logger = logging.getLogger(__name__)


class Agent:
    """Base agent: holds the parsed configuration and nothing else."""

    defaults: str = ""

    def __init__(self, args: str = ""):
        self.config: AgentConfig = AgentConfig.parse(args, self.defaults)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def role(self) -> str:
        return self.config.role

    def property(self, key: str) -> str:
        return self.config.property(key)

    def notify(self, message: str) -> None:
        self.config = self.config.updated(message)

    def open_episode(self, flag: str = "") -> None:
        pass

    def close_episode(self, flag: str = "") -> None:
        pass

    def take_action(self, board: Board) -> Optional[Action]:
        return None

    def check_for_win(self, board: Board) -> bool:
        return False

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, role={self.role!r})"


class RandomAgent(Agent):
    """Agent with its own seeded random engine."""

    def __init__(self, args: str = ""):
        super().__init__(args)
        self.rng = random.Random(self.config.seed)


class RandomPlacer(RandomAgent):
    """Environment: place the hint tile on the vacated edge and draw a new hint."""

    defaults = "name=place role=placer"

    def take_action(self, board: Board, anywhere: bool = False) -> Optional[Place]:
        space = placement_positions(board, anywhere)
        if not space:
            return None
        pos = self.rng.choice(space)

        bag = [t for t in BASE_TILES for _ in range(board.bag(t))]
        self.rng.shuffle(bag)
        if board.hint:
            tile = board.hint
            if tile in bag:
                bag.remove(tile)
        else:
            tile = bag.pop()
        if not bag:
            bag = [t for t in BASE_TILES for _ in range(BAG_COPIES)]
        hint = self.rng.choice(bag)

        return Place(pos, tile, hint)


class RandomSlider(RandomAgent):
    """Player: a uniformly random legal slide."""

    defaults = "name=slide role=slider"

    def take_action(self, board: Board) -> Optional[Slide]:
        opcode = list(Board.DIRECTIONS)
        self.rng.shuffle(opcode)
        for op in opcode:
            if board.copy().slide(op) != ILLEGAL:
                return Slide(op)
        return None


class MergeLargerSlider(Agent):
    """Player: prefer the axis with more merge potential.

    Slide priority is left (or up when the vertical axis scores higher), then
    right, then down, then the remaining axis.
    """

    defaults = "name=merge role=slider"

    ONETWO_SCORE = 5
    SPACE_SCORE = 1

    def take_action(self, board: Board) -> Optional[Slide]:
        horizontal = self.merge_score(board)
        vertical = self.merge_score(board, vertical=True)

        if horizontal >= vertical:
            order = [Board.LEFT, Board.RIGHT, Board.DOWN, Board.UP]
        else:
            order = [Board.UP, Board.RIGHT, Board.DOWN, Board.LEFT]
        for op in order:
            if board.copy().slide(op) != ILLEGAL:
                return Slide(op)
        return None

    def merge_score(self, board: Board, vertical: bool = False) -> int:
        b = board.copy()
        if vertical:
            b.transpose()

        space = 0
        score = 0
        for row in b.rows():
            pivot = row[0]
            c = 1
            while c < 4:
                tile = row[c]
                if tile == 0:
                    space = self.SPACE_SCORE
                elif pivot == 0:
                    pivot = tile
                elif can_merge(pivot, tile):
                    score += self.ONETWO_SCORE if pivot + tile == 3 else pivot
                    if c < 3:
                        pivot = row[c + 1]
                        c += 1
                else:
                    pivot = tile
                c += 1
        return score + space


class WeightAgent(Agent):
    """Agent owning a weight store and a learning rate.

    ``init=`` declares zeroed tables, ``load=`` reads them from a weight file
    (checked against ``init`` when both are given) and ``save=`` writes them
    back when the agent is closed.
    """

    def __init__(self, args: str = ""):
        super().__init__(args)
        self.weights = WeightStore(self.config.init or ())
        if self.config.load:
            self.weights.load(self.config.load)

    @property
    def alpha(self) -> float:
        return self.config.alpha

    def close(self) -> None:
        if self.config.save:
            self.weights.save(self.config.save)


class Trajectory:
    """Per-episode buffer of (weight addresses, reward) rows.

    Storage is allocated once and reused; ``clear`` only resets the length.
    """

    def __init__(self, width: int, capacity: int = 1000):
        self.width = width
        self.addresses = np.zeros((capacity, width), dtype=np.int64)
        self.rewards = np.zeros(capacity, dtype=np.float64)
        self.length = 0

    def __len__(self) -> int:
        return self.length

    @property
    def capacity(self) -> int:
        return len(self.rewards)

    def clear(self) -> None:
        self.length = 0

    def append(self, addresses: np.ndarray, reward: float) -> None:
        if self.length == self.capacity:
            self._grow()
        self.addresses[self.length] = addresses
        self.rewards[self.length] = reward
        self.length += 1

    def _grow(self) -> None:
        capacity = self.capacity * 2
        logger.debug(f"Growing trajectory buffer to {capacity} steps")
        addresses = np.zeros((capacity, self.width), dtype=np.int64)
        rewards = np.zeros(capacity, dtype=np.float64)
        addresses[:self.length] = self.addresses[:self.length]
        rewards[:self.length] = self.rewards[:self.length]
        self.addresses, self.rewards = addresses, rewards

    def reversed_steps(self):
        for k in range(self.length - 1, -1, -1):
            yield self.addresses[k], float(self.rewards[k])


class NTupleSlider(WeightAgent):
    """Player: greedy 1-ply afterstate search over an n-tuple network, trained
    by a backward TD pass over each finished episode.
    """

    defaults = "name=ntuple role=slider"

    def __init__(self, args: str = "", patterns: Optional[Sequence[Sequence[int]]] = None):
        super().__init__(args)
        if not self.weights.sizes:
            raise ConfigError(f"{self.name}: n-tuple slider needs init= or load= to size its weight tables")
        self.reward_fn = get_reward_function(self.config.reward)
        self.set_patterns(patterns if patterns is not None else DEFAULT_PATTERNS)

    def set_patterns(self, patterns: Sequence[Sequence[int]]) -> None:
        assert not getattr(self, "trajectory", None), "cannot change patterns mid-episode"
        self.network = NTupleNetwork(self.weights, patterns)
        self.trajectory = Trajectory(len(self.network))

    def open_episode(self, flag: str = "") -> None:
        self.trajectory.clear()

    def close_episode(self, flag: str = "") -> None:
        if self.alpha:
            losses = self.update()
            if losses:
                logger.debug(f"TD update over {len(losses)} steps, "
                             f"mean |loss| = {np.mean(np.abs(losses)):.4f}")
        self.trajectory.clear()

    def evaluate(self, board: Board) -> np.ndarray:
        """Candidate value per direction: transformed reward plus afterstate
        value, or -inf when the slide is illegal.
        """
        values = np.full(len(Board.DIRECTIONS), -np.inf)
        for op in Board.DIRECTIONS:
            after = board.copy()
            reward = after.slide(op)
            if reward == ILLEGAL:
                continue
            values[op] = self.reward_fn(reward) + self.network.value(after)
        return values

    def take_action(self, board: Board) -> Optional[Slide]:
        values = self.evaluate(board)
        if np.all(np.isneginf(values)):
            return None
        # first maximum in LEFT, UP, RIGHT, DOWN order
        best = int(np.argmax(values))

        after = board.copy()
        reward = after.slide(best)
        self.trajectory.append(self.network.addresses(after), self.reward_fn(reward))
        return Slide(best)

    def update(self, trajectory: Optional[Trajectory] = None) -> List[float]:
        """One backward TD pass; returns the loss of each step, last step first.

        A weight addressed by several patterns is adjusted once per occurrence.
        """
        trajectory = trajectory if trajectory is not None else self.trajectory
        buffer = self.weights.buffer
        next_value = 0.0
        pending_reward = 0.0
        losses: List[float] = []
        for addresses, reward in trajectory.reversed_steps():
            current_value = float(buffer[addresses].sum())
            loss = pending_reward + next_value - current_value
            np.add.at(buffer, addresses, self.alpha * loss)
            losses.append(loss)
            next_value = current_value
            pending_reward = reward
        return losses


AGENTS: Dict[str, Type[Agent]] = {
    "place": RandomPlacer,
    "random": RandomSlider,
    "merge": MergeLargerSlider,
    "ntuple": NTupleSlider,
}


def create_agent(kind: str, args: str = "") -> Agent:
    """Build the agent variant registered under ``kind``."""
    try:
        cls = AGENTS[kind]
    except KeyError:
        raise ConfigError(f"unknown agent kind {kind!r}, expected one of {sorted(AGENTS)}") from None
    return cls(args)
