from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from threes.bitboard import (
    CELL_MASK,
    MAX_RANK,
    slide_left,
    slide_right,
    transpose,
    reflect,
    count_empty,
)

ILLEGAL: int = -1
BASE_TILES: Tuple[int, ...] = (1, 2, 3)
BAG_COPIES: int = 4


def face_value(rank: int) -> int:
    """Displayed value of a tile rank: 1, 2, 3, 6, 12, 24, ..."""
    if rank < 3:
        return rank
    return 3 << (rank - 3)


class Board:
    LEFT: int = 0
    UP: int = 1
    RIGHT: int = 2
    DOWN: int = 3
    UNKNOWN: int = 4
    DIRECTIONS: List[int] = [LEFT, UP, RIGHT, DOWN]
    DIRECTION_NAMES: Dict[int, str] = {LEFT: "left", UP: "up", RIGHT: "right", DOWN: "down"}

    __slots__ = ("_raw", "_last", "_hint", "_bag")

    def __init__(self,
                 raw: int = 0,
                 last: int = UNKNOWN,
                 hint: int = 0,
                 bag: Optional[Tuple[int, int, int]] = None):
        assert 0 <= last <= Board.UNKNOWN
        assert 0 <= hint <= 3
        self._raw = raw
        self._last = last
        self._hint = hint
        self._bag = tuple(bag) if bag is not None else (BAG_COPIES,) * len(BASE_TILES)

    @classmethod
    def from_rows(cls, rows: List[List[int]], **kwargs) -> "Board":
        b = cls(**kwargs)
        for r, row in enumerate(rows):
            for c, rank in enumerate(row):
                b[4 * r + c] = rank
        return b

    # -------------------------------------------------------------- queries
    @property
    def raw(self) -> int:
        return self._raw

    @property
    def last_direction(self) -> int:
        return self._last

    @property
    def hint(self) -> int:
        return self._hint

    def bag(self, tile: int) -> int:
        """Remaining copies of base tile 1, 2 or 3."""
        assert tile in BASE_TILES
        return self._bag[tile - 1]

    def __getitem__(self, pos: int) -> int:
        assert 0 <= pos < 16
        return (self._raw >> (4 * pos)) & CELL_MASK

    def __setitem__(self, pos: int, rank: int) -> None:
        assert 0 <= pos < 16
        assert 0 <= rank <= MAX_RANK
        shift = 4 * pos
        self._raw = (self._raw & ~(CELL_MASK << shift)) | (rank << shift)

    def cell(self, row: int, col: int) -> int:
        return self[4 * row + col]

    def rows(self) -> List[List[int]]:
        return [[self.cell(r, c) for c in range(4)] for r in range(4)]

    def empty_positions(self) -> List[int]:
        return [p for p in range(16) if self[p] == 0]

    def count_empty(self) -> int:
        return count_empty(self._raw)

    def max_rank(self) -> int:
        return max(self[p] for p in range(16))

    def max_tile(self) -> int:
        return face_value(self.max_rank())

    def copy(self) -> "Board":
        return Board(self._raw, self._last, self._hint, self._bag)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (self._raw, self._last, self._hint, self._bag) == \
               (other._raw, other._last, other._hint, other._bag)

    __hash__ = None

    # ----------------------------------------------------------- transitions
    def transpose(self) -> None:
        self._raw = transpose(self._raw)

    def reflect(self) -> None:
        self._raw = reflect(self._raw)

    def slide(self, direction: int) -> int:
        """Slide every line toward ``direction``.

        Returns the merge reward, or ILLEGAL with the board untouched when no
        tile moves.
        """
        assert direction in self.DIRECTIONS
        if direction == self.LEFT:
            new, reward = slide_left(self._raw)
        elif direction == self.RIGHT:
            new, reward = slide_right(self._raw)
        elif direction == self.UP:
            new, reward = slide_left(transpose(self._raw))
            new = transpose(new)
        else:
            new, reward = slide_right(transpose(self._raw))
            new = transpose(new)

        if new == self._raw:
            return ILLEGAL
        self._raw = new
        self._last = direction
        return reward

    def place(self, pos: int, tile: int, hint: int = 0) -> int:
        """Put a base tile from the bag on an empty cell and set the next hint."""
        if not 0 <= pos < 16 or self[pos] != 0:
            return ILLEGAL
        if tile not in BASE_TILES or self.bag(tile) == 0:
            return ILLEGAL
        if hint not in (0,) + BASE_TILES:
            return ILLEGAL

        self[pos] = tile
        bag = list(self._bag)
        bag[tile - 1] -= 1
        if sum(bag) == 0:
            bag = [BAG_COPIES] * len(BASE_TILES)
        self._bag = tuple(bag)
        self._hint = hint
        return 0

    def has_valid_moves(self) -> bool:
        return any(self.copy().slide(d) != ILLEGAL for d in self.DIRECTIONS)

    # ------------------------------------------------------------ rendering
    def render_ascii(self, cell_width: int = 6) -> str:
        separator: str = "+" + ("-" * cell_width + "+") * 4
        output: List[str] = [separator]
        for r in range(4):
            row_str: List[str] = ["|"]
            for c in range(4):
                rank = self.cell(r, c)
                cell_str: str = str(face_value(rank)) if rank != 0 else "."
                row_str.append(cell_str.center(cell_width))
                row_str.append("|")
            output.append("".join(row_str))
            output.append(separator)
        output.append(f"hint: {face_value(self._hint) if self._hint else '-'}  "
                      f"bag: {dict(zip(BASE_TILES, self._bag))}")
        return "\n".join(output)

    def __str__(self) -> str:
        return self.render_ascii()

    def __repr__(self) -> str:
        return f"Board(raw={self._raw:#018x}, last={self._last}, hint={self._hint}, bag={self._bag})"


class Slide(NamedTuple):
    direction: int

    def apply(self, board: Board) -> int:
        return board.slide(self.direction)

    def __str__(self) -> str:
        return f"#{Board.DIRECTION_NAMES[self.direction][0].upper()}"


class Place(NamedTuple):
    position: int
    tile: int
    hint: int

    def apply(self, board: Board) -> int:
        return board.place(self.position, self.tile, self.hint)

    def __str__(self) -> str:
        return f"{self.position:X}{self.tile}+{self.hint}"


Action = Union[Slide, Place]

# Cells left empty on the edge opposite to the last slide
EDGE_POSITIONS: Dict[int, Tuple[int, ...]] = {
    Board.LEFT: (3, 7, 11, 15),
    Board.UP: (12, 13, 14, 15),
    Board.RIGHT: (0, 4, 8, 12),
    Board.DOWN: (0, 1, 2, 3),
    Board.UNKNOWN: tuple(range(16)),
}


def placement_positions(board: Board, anywhere: bool = False) -> List[int]:
    """Legal empty cells for the next placement."""
    edge = EDGE_POSITIONS[Board.UNKNOWN if anywhere else board.last_direction]
    return [p for p in edge if board[p] == 0]
