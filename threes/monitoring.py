"""
Statistics for blocks of Threes episodes
"""

import json
from collections import Counter
from typing import Any, Dict, List, Tuple

import numpy as np
from tabulate import tabulate
from tqdm import tqdm


# Custom JSON encoder to handle numpy types
class NumpyJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return super(NumpyJSONEncoder, self).default(obj)


class EpochStats:
    """Utility class for collecting and computing statistics over a block of episodes"""

    def __init__(self, index: int = 0):
        self.index = index
        self.stats = {
            'games': 0,
            'max_score': 0,
            'total_score': 0,
            'total_steps': 0,
            'total_time': 0.0,
            'tile_counts': Counter(),  # max tile reached -> number of games
            'game_scores': [],
            'game_lengths': [],
        }

    @property
    def games(self) -> int:
        return self.stats['games']

    def update_game_stats(self, score: int, max_tile: int, steps: int, duration: float):
        """Update statistics with a completed game

        Args:
            score: Final game score
            max_tile: Face value of the largest tile on the final board
            steps: Number of actions taken (slides and placements)
            duration: Wall-clock seconds the episode took
        """
        score_int = int(score)
        self.stats['games'] += 1
        self.stats['max_score'] = max(self.stats['max_score'], score_int)
        self.stats['total_score'] += score_int
        self.stats['total_steps'] += int(steps)
        self.stats['total_time'] += float(duration)
        self.stats['tile_counts'][int(max_tile)] += 1
        self.stats['game_scores'].append(score_int)
        self.stats['game_lengths'].append(int(steps))

    def compute_averages(self) -> Tuple[float, float]:
        """Returns (avg_score, ops_per_second)"""
        games = self.stats['games']
        avg_score = self.stats['total_score'] / games if games > 0 else 0
        total_time = self.stats['total_time']
        ops = self.stats['total_steps'] / total_time if total_time > 0 else 0
        return avg_score, ops

    def tile_distribution(self) -> List[Tuple[int, int, float, float]]:
        """(tile, games ending on it, percent, percent reaching at least it), ascending"""
        games = self.stats['games']
        rows = []
        reached = games
        for tile in sorted(self.stats['tile_counts']):
            count = self.stats['tile_counts'][tile]
            rows.append((tile, count, 100.0 * count / games, 100.0 * reached / games))
            reached -= count
        return rows

    def get_progress_description(self) -> str:
        avg_score, ops = self.compute_averages()
        return (f"Block {self.index}: "
                f"AvgScore: {avg_score:.1f} | "
                f"MaxScore: {self.stats['max_score']} | "
                f"Ops: {ops:.0f}/s")

    def summary_table(self) -> str:
        avg_score, ops = self.compute_averages()
        header = tabulate(
            [[self.index, self.games, f"{avg_score:.1f}", self.stats['max_score'], f"{ops:.0f}"]],
            headers=["Block", "Games", "Avg score", "Max score", "Ops/s"],
        )
        tiles = tabulate(
            [(tile, count, f"{pct:.1f}%", f"{cum:.1f}%") for tile, count, pct, cum in self.tile_distribution()],
            headers=["Max tile", "Games", "Share", "Reached"],
        )
        return f"{header}\n\n{tiles}"

    def to_dict(self) -> Dict[str, Any]:
        avg_score, ops = self.compute_averages()
        return {
            'block': self.index,
            'avg_score': avg_score,
            'ops': ops,
            **{k: v for k, v in self.stats.items() if k != 'tile_counts'},
            'tile_counts': {str(k): v for k, v in sorted(self.stats['tile_counts'].items())},
        }


def print_block_summary(stats: EpochStats):
    """Print a one-line block summary without disturbing an active tqdm bar"""
    tqdm.write(stats.get_progress_description())


def save_stats(path: str, blocks: List[EpochStats]):
    with open(path, "w", encoding="utf-8") as f:
        json.dump([b.to_dict() for b in blocks], f, cls=NumpyJSONEncoder, indent=2)
