"""
Tests for themeforge/select.py
Diverse top-K, ranking, judge re-scoring, shortlist stats
"""

import pytest

from themeforge.proposer import FallbackJudge, JudgeVerdict
from themeforge.score import with_exploitation_boost
from themeforge.select import (
    assign_ranks,
    diverse_top_k,
    diverse_top_k_with_backfill,
    rescore_with_judge,
    select_shortlist,
    selection_stats,
)

from tests.helpers.builders import make_candidate
from tests.helpers.fakes import FixedJudge, RawJudge


@pytest.fixture
def population():
    """
    Score order A > B > C > D > E > F.
    A, B, C share DNA; D is 0.2 away; E hugs D; F is far from everything.
    """
    return [
        make_candidate(0, quality=0.90, hue=0.0),    # A
        make_candidate(1, quality=0.89, hue=0.0),    # B
        make_candidate(2, quality=0.88, hue=0.0),    # C
        make_candidate(3, quality=0.87, hue=30.0),   # D
        make_candidate(4, quality=0.86, hue=31.0),   # E
        make_candidate(5, quality=0.85, hue=60.0),   # F
    ]


def ids(candidates):
    return [c.candidate_id[:9] for c in candidates]


class TestDiverseTopK:

    def test_separation_then_backfill(self, population):
        selected, backfilled = diverse_top_k_with_backfill(population, 5)
        # A, B free; C too close; D ok; E too close to D; F ok; then C backfilled
        assert ids(selected) == ["cand_0001", "cand_0002", "cand_0004", "cand_0006", "cand_0003"]
        assert backfilled == 1

    def test_first_two_ignore_separation(self, population):
        selected = diverse_top_k(population, 2)
        assert ids(selected) == ["cand_0001", "cand_0002"]

    def test_small_population(self, population):
        assert len(diverse_top_k(population[:3], 5)) == 3

    def test_empty(self):
        assert diverse_top_k([], 5) == []

    @pytest.mark.parametrize("k", [1, 2, 3, 4, 5, 6])
    def test_exactly_k_distinct(self, population, k):
        selected = diverse_top_k(population, k)
        assert len(selected) == k
        assert len({c.candidate_id for c in selected}) == k

    def test_input_order_irrelevant(self, population):
        assert ids(diverse_top_k(list(reversed(population)), 5)) == ids(diverse_top_k(population, 5))


class TestRanks:

    def test_ranks_in_order(self, population):
        ranked = assign_ranks(population[:3])
        assert [c.rank for c in ranked] == [1, 2, 3]
        assert population[0].rank is None


class TestRescoreWithJudge:

    def test_aesthetics_replaced(self, population):
        shortlist = assign_ranks(population[:3])
        out = rescore_with_judge(shortlist, FixedJudge(score=0.5))
        for c in out:
            assert c.scores.aesthetics == 0.5
            assert c.judge.provider == "fixed"
            assert c.judge.reason == "scripted"
            assert c.judge.risk_flags == ("contrast",)

    def test_resorted_and_reranked(self, population):
        shortlist = assign_ranks(population[:3])
        judge = FixedJudge(score=0.1, scores={population[2].candidate_id: 1.0})
        out = rescore_with_judge(shortlist, judge)
        assert out[0].candidate_id == population[2].candidate_id
        assert [c.rank for c in out] == [1, 2, 3]

    def test_failure_isolated(self, population):
        shortlist = assign_ranks(population[:3])
        failing = population[1].candidate_id
        judge = FixedJudge(score=0.95, fail=[failing])
        out = rescore_with_judge(shortlist, judge)
        assert len(judge.calls) == 3
        kept = next(c for c in out if c.candidate_id == failing)
        assert kept.scores == population[1].scores
        assert kept.judge is None

    def test_missing_score_keeps_aesthetics(self, population):
        shortlist = assign_ranks(population[:2])
        out = rescore_with_judge(shortlist, FixedJudge(score=None))
        assert [c.scores.aesthetics for c in out] == [0.90, 0.89]
        assert all(c.judge is not None for c in out)

    def test_nan_score_keeps_aesthetics(self, population):
        out = rescore_with_judge(assign_ranks(population[:1]), FixedJudge(score=float("nan")))
        assert out[0].scores.aesthetics == 0.90

    def test_out_of_range_score_clamped(self, population):
        out = rescore_with_judge(assign_ranks(population[:2]), FixedJudge(score=7.0))
        for c in out:
            assert c.scores.aesthetics == 1.0
            assert 0.0 <= c.scores.score <= 1.0

    def test_fallback_judge(self, population):
        out = rescore_with_judge(assign_ranks(population[:1]), FallbackJudge())
        assert out[0].scores.aesthetics == 0.75
        assert out[0].judge.reason == "fallback"

    def test_focus_boost_not_carried(self):
        boosted = with_exploitation_boost(
            [make_candidate(0, mood="premium", era="swiss", quality=0.8)],
            ["premium/swiss"], "exploitation",
        )
        assert boosted[0].scores.score == pytest.approx(0.78)
        [judged] = rescore_with_judge(assign_ranks(boosted), FixedJudge(score=0.8))
        assert judged.scores.focus_boost == 0
        assert judged.scores.score == pytest.approx(0.72)

    def test_malformed_verdicts_isolated(self, population):
        shortlist = assign_ranks(population[:4])
        judge = RawJudge(
            None,
            JudgeVerdict(score="high"),
            {"score": 0.4, "reason": "ok", "riskFlags": ["dense"]},
            JudgeVerdict(score="0.9"),
        )
        out = {c.candidate_id: c for c in rescore_with_judge(shortlist, judge)}
        assert len(judge.calls) == 4

        for original in population[:2]:
            kept = out[original.candidate_id]
            assert kept.scores == original.scores
            assert kept.judge is None

        from_mapping = out[population[2].candidate_id]
        assert from_mapping.scores.aesthetics == 0.4
        assert from_mapping.judge.risk_flags == ("dense",)
        assert out[population[3].candidate_id].scores.aesthetics == 0.9


class TestSelectionStats:

    def test_pairwise_and_families(self):
        selected = [
            make_candidate(0, mood="calm", era="retro", hue=0.0),
            make_candidate(1, mood="calm", era="retro", hue=30.0),
            make_candidate(2, mood="bold", era="y2k", hue=60.0),
        ]
        stats = selection_stats(selected)
        assert stats.pairwise_distances["min"] == pytest.approx(0.2)
        assert stats.pairwise_distances["max"] == pytest.approx(0.4)
        assert stats.family_counts == {"calm/retro": 2, "bold/y2k": 1}

    def test_single(self):
        stats = selection_stats([make_candidate(0)])
        assert stats.pairwise_distances == {"min": 0.0, "mean": 0.0, "max": 0.0}

    def test_select_shortlist(self, population):
        shortlist, stats = select_shortlist(population)
        assert [c.rank for c in shortlist] == [1, 2, 3, 4, 5]
        assert stats.backfilled == 1
        assert all(c.judge is None for c in shortlist)
