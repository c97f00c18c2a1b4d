import random

import pytest

from threes.game import Board


@pytest.fixture
def rng():
    return random.Random(2024)


@pytest.fixture
def stuck_board():
    """Full board with no merge in any direction."""
    return Board.from_rows([
        [3, 4, 3, 4],
        [4, 3, 4, 3],
        [3, 4, 3, 4],
        [4, 3, 4, 3],
    ])


@pytest.fixture
def corner_board():
    """Single 1-tile in the top-left corner: only RIGHT and DOWN are legal."""
    b = Board()
    b[0] = 1
    return b
