from typing import List, Sequence, Tuple

import numpy as np

from threes.game import Board
from threes.weights import WeightStore

Pattern = Tuple[int, ...]

MAX_PATTERN_LENGTH = 8

ROWS: List[Pattern] = [tuple(range(4 * r, 4 * r + 4)) for r in range(4)]
COLUMNS: List[Pattern] = [tuple(range(c, 16, 4)) for c in range(4)]

# Pattern i reads table i % table_count, so with two tables the even entries
# (outer lines) tie their weights, as do the odd entries (inner lines).
DEFAULT_PATTERNS: List[Pattern] = [
    ROWS[0], ROWS[1], ROWS[3], ROWS[2],
    COLUMNS[0], COLUMNS[1], COLUMNS[3], COLUMNS[2],
]


class NTupleNetwork:
    """Sum of weights addressed by fixed cell patterns of a board.

    Each pattern's cell ranks are packed most-significant-first, four bits
    per cell, into an index of its table.  Several patterns may share a table:
    pattern ``i`` uses table ``i % len(store)``.
    """

    def __init__(self, store: WeightStore, patterns: Sequence[Sequence[int]] = DEFAULT_PATTERNS):
        if len(store) == 0:
            raise ValueError("n-tuple network needs at least one weight table")

        self.store = store
        self.patterns: Tuple[Pattern, ...] = tuple(tuple(int(p) for p in pattern) for pattern in patterns)
        if not self.patterns:
            raise ValueError("n-tuple network needs at least one pattern")

        for i, pattern in enumerate(self.patterns):
            if not 1 <= len(pattern) <= MAX_PATTERN_LENGTH:
                raise ValueError(f"pattern {i} has {len(pattern)} cells, expected 1..{MAX_PATTERN_LENGTH}")
            if any(not 0 <= p < 16 for p in pattern):
                raise ValueError(f"pattern {i} has a cell outside the board: {pattern}")
            needed = 16 ** len(pattern)
            size = store.sizes[self.table_of(i)]
            if size < needed:
                raise ValueError(f"pattern {i} needs {needed} slots but table {self.table_of(i)} has {size}")

        self._bases = np.array([store.offsets[self.table_of(i)] for i in range(len(self.patterns))],
                               dtype=np.int64)

    def __len__(self) -> int:
        return len(self.patterns)

    def table_of(self, pattern_index: int) -> int:
        return pattern_index % len(self.store)

    @staticmethod
    def index(pattern: Sequence[int], board: Board) -> int:
        idx = 0
        for p in pattern:
            idx = (idx << 4) | board[p]
        return idx

    def indices(self, board: Board) -> List[int]:
        """Per-pattern slot within its own table."""
        return [self.index(pattern, board) for pattern in self.patterns]

    def addresses(self, board: Board) -> np.ndarray:
        """Flat weight-buffer addresses of every pattern, in pattern order."""
        return self._bases + np.array(self.indices(board), dtype=np.int64)

    def value_at(self, addresses: np.ndarray) -> float:
        return float(self.store.buffer[addresses].sum())

    def value(self, board: Board) -> float:
        return self.value_at(self.addresses(board))
