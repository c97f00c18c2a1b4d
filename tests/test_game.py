"""Tests for the board engine: slide/merge, transpose, placement and bag."""

import pytest

from threes.bitboard import BASE_PAIR_REWARD, slide_row, transpose
from threes.game import ILLEGAL, Board, Place, Slide, face_value, placement_positions


def row_board(row):
    return Board.from_rows([row, [0] * 4, [0] * 4, [0] * 4])


def random_board(rng, ranks=(0, 0, 0, 1, 2, 3, 4, 5)):
    return Board.from_rows([[rng.choice(ranks) for _ in range(4)] for _ in range(4)])


class TestSlideRow:
    def test_base_pair_merges(self):
        b = row_board([1, 2, 0, 0])
        reward = b.slide(Board.LEFT)
        assert b.rows()[0] == [3, 0, 0, 0]
        assert reward == BASE_PAIR_REWARD

    def test_base_pair_reversed(self):
        b = row_board([2, 1, 0, 0])
        reward = b.slide(Board.LEFT)
        assert b.rows()[0] == [3, 0, 0, 0]
        assert reward == BASE_PAIR_REWARD

    def test_equal_ranks_merge_up(self):
        b = row_board([3, 3, 0, 0])
        reward = b.slide(Board.LEFT)
        assert b.rows()[0] == [4, 0, 0, 0]
        assert reward == 4

    def test_only_eligible_pair_merges(self):
        b = row_board([4, 3, 3, 4])
        reward = b.slide(Board.LEFT)
        assert b.rows()[0] == [4, 4, 4, 0]
        assert reward == 4

    def test_merged_tile_does_not_merge_again(self):
        assert slide_row([3, 3, 4, 0]) == ([4, 4, 0, 0], 4)

    def test_two_pairs_in_one_row(self):
        assert slide_row([1, 2, 5, 5]) == ([3, 6, 0, 0], BASE_PAIR_REWARD + 6)

    def test_ones_and_twos_do_not_self_merge(self):
        assert slide_row([1, 1, 2, 2]) == ([1, 3, 2, 0], BASE_PAIR_REWARD)

    def test_three_does_not_merge_with_base(self):
        assert slide_row([3, 1, 0, 3]) == ([3, 1, 3, 0], 0)

    def test_top_rank_does_not_overflow(self):
        assert slide_row([15, 15, 0, 0]) == ([15, 15, 0, 0], 0)

    def test_compaction_without_merge_is_legal(self):
        b = row_board([0, 0, 5, 0])
        assert b.slide(Board.LEFT) == 0
        assert b.rows()[0] == [5, 0, 0, 0]


class TestDirections:
    def test_right_mirrors_left(self):
        b = row_board([1, 2, 0, 0])
        assert b.slide(Board.RIGHT) == BASE_PAIR_REWARD
        assert b.rows()[0] == [0, 0, 0, 3]

    def test_up_merges_columns(self):
        b = Board()
        b[0], b[4] = 1, 2
        assert b.slide(Board.UP) == BASE_PAIR_REWARD
        assert b[0] == 3 and b[4] == 0

    def test_down_merges_columns(self):
        b = Board()
        b[0], b[4] = 3, 3
        assert b.slide(Board.DOWN) == 4
        assert b[12] == 4
        assert b.count_empty() == 15

    def test_orientation_restored(self):
        b = Board.from_rows([
            [1, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 5],
        ])
        b.slide(Board.UP)
        assert b.rows() == [
            [1, 0, 0, 5],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ]

    def test_legal_slide_records_direction(self, corner_board):
        corner_board.slide(Board.DOWN)
        assert corner_board.last_direction == Board.DOWN


class TestIllegalSlides:
    def test_blocked_direction_is_sentinel_and_untouched(self, corner_board):
        before = corner_board.copy()
        for direction in (Board.LEFT, Board.UP):
            assert corner_board.slide(direction) == ILLEGAL
            assert corner_board == before
            assert corner_board.raw == before.raw

    def test_stuck_board_has_no_moves(self, stuck_board):
        before = stuck_board.copy()
        for direction in Board.DIRECTIONS:
            assert stuck_board.slide(direction) == ILLEGAL
        assert stuck_board == before
        assert not stuck_board.has_valid_moves()

    def test_blocked_slide_never_changes_board(self, rng):
        for _ in range(300):
            b = random_board(rng)
            for direction in Board.DIRECTIONS:
                after = b.copy()
                reward = after.slide(direction)
                if reward == ILLEGAL:
                    assert after == b
                else:
                    assert after.raw != b.raw
                    assert after.last_direction == direction

    def test_packed_rows_block_left_and_up(self, rng):
        for _ in range(100):
            rows = []
            for _ in range(4):
                row = []
                for _ in range(rng.randint(0, 4)):
                    # neighbours never merge: ranks of 3 and up, never equal
                    row.append(rng.choice([r for r in range(3, 15) if not row or r != row[-1]]))
                rows.append(row + [0] * (4 - len(row)))
            b = Board.from_rows(rows, last=Board.DOWN)
            before = b.copy()
            assert b.slide(Board.LEFT) == ILLEGAL
            assert b == before

            b.transpose()
            before.transpose()
            assert b.slide(Board.UP) == ILLEGAL
            assert b == before

    def test_action_applies_slide(self, corner_board):
        assert Slide(Board.LEFT).apply(corner_board) == ILLEGAL
        assert Slide(Board.RIGHT).apply(corner_board) == 0
        assert corner_board[3] == 1


class TestTranspose:
    def test_self_inverse(self, rng):
        for _ in range(200):
            b = Board(rng.getrandbits(64))
            t = b.copy()
            t.transpose()
            t.transpose()
            assert t == b

    def test_swaps_along_diagonal(self, rng):
        for _ in range(50):
            raw = rng.getrandbits(64)
            b, t = Board(raw), Board(transpose(raw))
            for r in range(4):
                for c in range(4):
                    assert t.cell(c, r) == b.cell(r, c)

    def test_reflect_mirrors_rows(self, rng):
        for _ in range(50):
            b = Board(rng.getrandbits(64))
            m = b.copy()
            m.reflect()
            assert m.rows() == [row[::-1] for row in b.rows()]
            m.reflect()
            assert m == b

    def test_right_slide_via_reflect(self, rng):
        for _ in range(100):
            b = random_board(rng)
            right = b.copy()
            mirrored = b.copy()
            mirrored.reflect()
            assert right.slide(Board.RIGHT) == mirrored.slide(Board.LEFT)
            mirrored.reflect()
            assert mirrored.raw == right.raw

    def test_copy_is_independent(self, corner_board):
        probe = corner_board.copy()
        probe.slide(Board.RIGHT)
        assert corner_board[0] == 1
        assert probe[0] == 0


class TestPlacement:
    def test_place_consumes_bag_and_sets_hint(self):
        b = Board()
        assert b.place(5, 1, 2) == 0
        assert b[5] == 1
        assert b.bag(1) == 3
        assert b.hint == 2

    def test_place_on_occupied_cell_is_illegal(self):
        b = Board()
        b[5] = 4
        before = b.copy()
        assert Place(5, 1, 2).apply(b) == ILLEGAL
        assert b == before

    def test_place_rejects_non_base_tile(self):
        assert Board().place(0, 4, 1) == ILLEGAL

    def test_place_rejects_tile_missing_from_bag(self):
        assert Board(bag=(0, 4, 4)).place(0, 1, 2) == ILLEGAL

    def test_bag_refills_when_empty(self):
        b = Board()
        pos = 0
        for tile in (1, 2, 3):
            for _ in range(4):
                assert b.place(pos, tile, 0) == 0
                pos += 1
        assert [b.bag(t) for t in (1, 2, 3)] == [4, 4, 4]

    def test_positions_follow_vacated_edge(self):
        b = Board(last=Board.LEFT)
        assert placement_positions(b) == [3, 7, 11, 15]
        assert placement_positions(Board(last=Board.UP)) == [12, 13, 14, 15]
        assert placement_positions(Board(last=Board.RIGHT)) == [0, 4, 8, 12]
        assert placement_positions(Board(last=Board.DOWN)) == [0, 1, 2, 3]
        assert placement_positions(Board()) == list(range(16))

    def test_positions_skip_occupied_cells(self):
        b = Board(last=Board.LEFT)
        b[7] = 3
        assert placement_positions(b) == [3, 11, 15]
        assert 7 not in placement_positions(b, anywhere=True)


class TestFaceValues:
    @pytest.mark.parametrize("rank,value", [(0, 0), (1, 1), (2, 2), (3, 3), (4, 6), (5, 12), (9, 192)])
    def test_face_value(self, rank, value):
        assert face_value(rank) == value

    def test_max_tile(self):
        assert row_board([1, 5, 2, 0]).max_tile() == 12

    def test_render_shows_faces(self):
        text = row_board([1, 2, 4, 0]).render_ascii()
        assert "6" in text
        assert "." in text
        assert "hint" in text
