"""
Packed 64-bit board primitives for Threes.

Cell ``p = 4 * row + col`` lives in bits ``4p .. 4p+3``; a row is therefore a
16-bit word with column 0 in the low nibble.  Sliding is precomputed for every
possible row so the board only ever needs the LEFT rule plus reflect/transpose.
"""

from typing import List, Sequence

ROW_MASK = 0xFFFF
CELL_MASK = 0xF
FULL_MASK = 0xFFFFFFFFFFFFFFFF

MAX_RANK = 15
BASE_PAIR_REWARD = 3


def unpack_row(row16: int) -> List[int]:
    """16-bit row -> [c0, c1, c2, c3] ranks (0 = empty)."""
    return [(row16 >> (4 * i)) & CELL_MASK for i in range(4)]


def pack_row(vals: Sequence[int]) -> int:
    """[c0..c3] -> 16-bit row."""
    r = 0
    for i, v in enumerate(vals):
        r |= (v & CELL_MASK) << (4 * i)
    return r


def reflect_row(row16: int) -> int:
    """abcd (LSB->MSB) => dcba."""
    return ((row16 & 0xF) << 12 |
            (row16 & 0xF0) << 4 |
            (row16 & 0xF00) >> 4 |
            (row16 & 0xF000) >> 12)


def transpose(board: int) -> int:
    """Swap rows <-> columns: 2x2 cell swaps, then 2x2 block swaps."""
    a1 = board & 0xF0F00F0FF0F00F0F
    a2 = board & 0x0000F0F00000F0F0
    a3 = board & 0x0F0F00000F0F0000
    a = a1 | (a2 << 12) | (a3 >> 12)
    b1 = a & 0xFF00FF0000FF00FF
    b2 = a & 0x00FF00FF00000000
    b3 = a & 0x00000000FF00FF00
    return (b1 | (b2 >> 24) | (b3 << 24)) & FULL_MASK


def reflect(board: int) -> int:
    """Mirror every row horizontally."""
    r = 0
    for i in range(4):
        row = (board >> (16 * i)) & ROW_MASK
        r |= reflect_row(row) << (16 * i)
    return r


def can_merge(a: int, b: int) -> bool:
    """Whether two non-empty adjacent tiles combine."""
    if a + b == 3 and a and b:
        return True
    return a == b and 3 <= a < MAX_RANK


def merge(a: int, b: int):
    """Return (merged rank, reward) for a mergeable pair."""
    if a + b == 3:
        return 3, BASE_PAIR_REWARD
    return a + 1, a + 1


def slide_row(cells: Sequence[int]):
    """Slide one row toward column 0.

    Returns (new cells, reward).  A tile produced by a merge is not merged
    again in the same slide.
    """
    tight = [c for c in cells if c]
    out: List[int] = []
    score = 0
    i = 0
    while i < len(tight):
        pivot = tight[i]
        if i + 1 < len(tight) and can_merge(pivot, tight[i + 1]):
            rank, gain = merge(pivot, tight[i + 1])
            out.append(rank)
            score += gain
            i += 2  # the absorbed tile is consumed
        else:
            out.append(pivot)
            i += 1
    out += [0] * (len(cells) - len(out))
    return out, score


ROW_LEFT = [0] * 65536
ROW_REWARD = [0] * 65536


def _init_tables():
    for r in range(65536):
        tight, score = slide_row(unpack_row(r))
        ROW_LEFT[r] = pack_row(tight)
        ROW_REWARD[r] = score


_init_tables()


def slide_left(board: int):
    """Return (new_board, reward) for a LEFT slide of every row."""
    res = 0
    score = 0
    for i in range(4):
        row = (board >> (16 * i)) & ROW_MASK
        res |= ROW_LEFT[row] << (16 * i)
        score += ROW_REWARD[row]
    return res, score


def slide_right(board: int):
    t, s = slide_left(reflect(board))
    return reflect(t), s


def count_empty(board: int) -> int:
    """Number of zero cells."""
    return sum(1 for p in range(16) if not (board >> (4 * p)) & CELL_MASK)
