"""
Tests for themeforge/board.py
"""

from themeforge.board import board_variants, build_family_board

from tests.helpers.builders import make_candidate


def population():
    return [
        make_candidate(0, mood="calm", era="retro", quality=0.70),
        make_candidate(1, mood="premium", era="swiss", quality=0.95),
        make_candidate(2, mood="calm", era="retro", quality=0.80),
        make_candidate(3, mood="calm", era="retro", quality=0.60),
        make_candidate(4, mood="bold", era="neo-brutalist", quality=0.85),
        make_candidate(5, mood="premium", era="swiss", quality=0.50),
    ]


class TestFamilyBoard:

    def test_groups_sorted_by_top_score(self):
        board = build_family_board(population())
        assert [g.family_id for g in board] == ["premium/swiss", "bold/neo-brutalist", "calm/retro"]

    def test_labels(self):
        labels = {g.family_id: g.label for g in build_family_board(population())}
        assert labels["premium/swiss"] == "Premium Swiss"
        assert labels["bold/neo-brutalist"] == "Bold Neo Brutalist"

    def test_members_sorted_and_truncated(self):
        board = build_family_board(population(), variants_per_family=2)
        calm = next(g for g in board if g.family_id == "calm/retro")
        assert [c.candidate_id[:9] for c in calm.candidates] == ["cand_0003", "cand_0001"]

    def test_default_width(self):
        board = build_family_board(population())
        assert sum(len(g.candidates) for g in board) == 6

    def test_width_floor(self):
        board = build_family_board(population(), variants_per_family=0)
        assert all(len(g.candidates) == 1 for g in board)

    def test_empty(self):
        assert build_family_board([]) == []

    def test_board_variants(self):
        assert board_variants(None) == 4
        assert board_variants(0) == 4
        assert board_variants(2) == 2
        assert board_variants(-3) == 1
