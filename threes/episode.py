import logging
import time
from typing import List, Optional, Tuple

from tqdm import tqdm

from threes.game import ILLEGAL, Action, Board, Slide
from threes.monitoring import EpochStats, print_block_summary

logger = logging.getLogger(__name__)


class Episode:
    """One game: the environment places the opening tiles, then slider and
    placer alternate until either has nothing legal to do.
    """

    INITIAL_TILES: int = 9

    def __init__(self, board: Optional[Board] = None):
        self.board: Board = board if board is not None else Board()
        self.score: int = 0
        self.history: List[Tuple[str, Action, int]] = []
        self.slides: int = 0
        self.start_time: float = 0.0
        self.end_time: float = 0.0

    @property
    def steps(self) -> int:
        return len(self.history)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def max_tile(self) -> int:
        return self.board.max_tile()

    def play(self, slider, placer, limit: Optional[int] = None) -> "Episode":
        """Run to the end; ``limit`` caps the number of slides."""
        self.start_time = time.perf_counter()
        for _ in range(self.INITIAL_TILES):
            if not self._place(placer):
                break
        while limit is None or self.slides < limit:
            action = slider.take_action(self.board)
            if action is None or not self._apply(slider, action):
                break
            if slider.check_for_win(self.board):
                break
            if not self._place(placer):
                break
        self.end_time = time.perf_counter()
        return self

    def _place(self, placer) -> bool:
        action = placer.take_action(self.board)
        if action is None:
            # nothing free on the vacated edge
            action = placer.take_action(self.board, anywhere=True)
        if action is None:
            return False
        return self._apply(placer, action)

    def _apply(self, agent, action: Action) -> bool:
        reward = action.apply(self.board)
        if reward == ILLEGAL:
            logger.debug(f"{agent.name} played illegal action {action}")
            return False
        self.score += reward
        self.history.append((agent.name, action, reward))
        if isinstance(action, Slide):
            self.slides += 1
        return True


class GameRunner:
    """Plays episodes between one slider and one placer and keeps per-block statistics."""

    def __init__(self, slider, placer, block: int = 1000, limit: Optional[int] = None):
        assert block > 0
        self.slider = slider
        self.placer = placer
        self.block = block
        self.limit = limit

    def play_episode(self) -> Episode:
        for agent in (self.slider, self.placer):
            agent.open_episode(f"{self.slider.name}:{self.placer.name}")
        episode = Episode().play(self.slider, self.placer, self.limit)
        for agent in (self.slider, self.placer):
            agent.close_episode(f"{self.slider.name}:{self.placer.name}")
        return episode

    def run(self, total: int, progress: bool = True) -> List[EpochStats]:
        blocks: List[EpochStats] = []
        stats = EpochStats(index=1)
        pbar = tqdm(range(total), desc="Episodes", disable=not progress)
        for _ in pbar:
            episode = self.play_episode()
            stats.update_game_stats(episode.score, episode.max_tile, episode.steps, episode.duration)
            if stats.games == self.block:
                blocks.append(stats)
                pbar.set_description(stats.get_progress_description())
                self._report(stats, progress)
                stats = EpochStats(index=len(blocks) + 1)
        if stats.games:
            blocks.append(stats)
            self._report(stats, progress)
        return blocks

    @staticmethod
    def _report(stats: EpochStats, progress: bool) -> None:
        # one summary line per block, above the bar when it is shown
        if progress:
            print_block_summary(stats)
        else:
            logger.info(stats.get_progress_description())
