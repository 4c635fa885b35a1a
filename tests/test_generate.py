"""
Tests for themeforge/generate.py
Local generation, backfill and the propose/repair loop
"""

import math
from collections import Counter

import pytest

from themeforge.config import (
    COLOR_STRATEGIES,
    DENSITY_PROFILES,
    ELEVATION_PROFILES,
    ERAS,
    MOODS,
    RADIUS_PROFILES,
    RepairConfig,
)
from themeforge.generate import LocalParamGenerator, backfill, generate_param_sets
from themeforge.models import ParameterSet
from themeforge.proposer import ProposalResult, ProposerError
from themeforge.seeds import GenerationContext
from themeforge.validate import normalize_diversity_rules

from tests.helpers.fakes import ScriptedProposer, wire


def spread(count):
    return [
        ParameterSet(
            MOODS[i % 7], ERAS[i % 6], DENSITY_PROFILES[i % 3],
            ELEVATION_PROFILES[i % 4], RADIUS_PROFILES[i % 3], COLOR_STRATEGIES[i % 6],
        )
        for i in range(count)
    ]


def rules_for(count, mode="exploration"):
    return normalize_diversity_rules(None, count, mode)


def assert_unique(params, count):
    assert len(params) == count
    assert len({p.signature for p in params}) == count


class TestLocalParamGenerator:

    def test_exact_count_unique(self, ctx):
        params = LocalParamGenerator(ctx).generate(20, rules_for(20), "exploration")
        assert_unique(params, 20)

    def test_round_robin_coverage(self, ctx):
        params = LocalParamGenerator(ctx).generate(20, rules_for(20), "exploration")
        assert len({p.mood for p in params}) == 7
        assert set(p.density_profile for p in params) == set(DENSITY_PROFILES)
        assert max(Counter(p.era for p in params).values()) <= math.ceil(20 / 6)

    def test_focus_bias_in_exploitation(self):
        ctx = GenerationContext(run_seed=11)
        params = LocalParamGenerator(ctx).generate(
            60, rules_for(60, "exploitation"), "exploitation", ["premium/swiss"]
        )
        focused = sum(1 for p in params if p.family_id == "premium/swiss")
        assert focused > 60 * 0.5

    def test_focus_ignored_in_exploration(self, ctx):
        params = LocalParamGenerator(ctx).generate(
            21, rules_for(21), "exploration", ["premium/swiss"]
        )
        assert Counter(p.mood for p in params)["premium"] == 3

    def test_invalid_focus_ids_ignored(self, ctx):
        params = LocalParamGenerator(ctx).generate(
            14, rules_for(14, "exploitation"), "exploitation", ["gothic/swiss", "calm/baroque"]
        )
        assert len({p.mood for p in params}) == 7


class TestBackfill:

    def test_keeps_valid_first(self, ctx):
        valid = spread(7)
        filled = backfill(valid, 20, rules_for(20), "exploration", (), ctx)
        assert filled[:7] == valid
        assert_unique(filled, 20)

    def test_truncates_oversupply(self, ctx):
        filled = backfill(spread(30), 20, rules_for(20), "exploration", (), ctx)
        assert filled == spread(20)

    def test_registry_sweep_when_generator_starved(self, ctx):
        """Local generator yields nothing; the registry walk still completes."""
        starved = RepairConfig(attempts_per_candidate=0)
        filled = backfill([], 50, rules_for(50), "exploration", (), ctx, starved)
        assert_unique(filled, 50)


class TestMockMode:
    """proposer=None routes to the local generator."""

    def test_twenty_exploration(self, job, ctx):
        params, report = generate_param_sets(job, None, 20, rules_for(20), "exploration", (), ctx)
        assert_unique(params, 20)
        assert len({p.mood for p in params}) >= 5
        assert {p.density_profile for p in params} == set(DENSITY_PROFILES)
        assert max(Counter(p.era for p in params).values()) <= 4
        assert report.attempts == 1
        assert report.repaired is False
        assert report.errors == ()

    @pytest.mark.parametrize("count", [5, 6, 17, 64, 200])
    def test_any_count(self, job, count):
        ctx = GenerationContext(run_seed=count)
        params, _ = generate_param_sets(job, None, count, rules_for(count), "exploration", (), ctx)
        assert_unique(params, count)


class TestRepairLoop:

    def test_accepts_first_valid_proposal(self, job, ctx):
        good = spread(20)
        proposer = ScriptedProposer([wire(p) for p in good])
        params, report = generate_param_sets(job, proposer, 20, rules_for(20), "exploration", (), ctx)
        assert params == good
        assert report.attempts == 1
        assert report.repaired is False
        assert proposer.kinds == ["propose"]

    def test_repair_fixes_proposal(self, job, ctx):
        good = spread(20)
        proposer = ScriptedProposer([wire(good[0])] * 20, [wire(p) for p in good])
        params, report = generate_param_sets(job, proposer, 20, rules_for(20), "exploration", (), ctx)
        assert params == good
        assert report.attempts == 2
        assert report.repaired is True
        assert report.errors == ()

        _, details = proposer.calls[1]
        assert details["previous"] == [good[0].to_wire_dict()]
        assert "candidate[1] duplicated params set" in details["violations"]

    def test_identical_candidates_backfilled(self, job, ctx):
        same = spread(1)[0]
        proposer = ScriptedProposer([wire(same)] * 20)
        params, report = generate_param_sets(job, proposer, 20, rules_for(20), "exploration", (), ctx)
        assert_unique(params, 20)
        assert params[0] == same
        assert report.repaired is True
        assert report.attempts == 3
        assert any("duplicated params set" in e for e in report.errors)
        assert proposer.kinds == ["propose", "repair", "repair"]

    @pytest.mark.parametrize("garbage", [
        "not a list",
        {"candidates": "nope"},
        [1, 2, 3],
        ProposalResult.failure("no JSON object found in response"),
        ProposerError("timeout"),
        ValueError("transport exploded"),
    ])
    def test_garbage_proposer(self, job, ctx, garbage):
        proposer = ScriptedProposer(garbage)
        params, report = generate_param_sets(job, proposer, 20, rules_for(20), "exploration", (), ctx)
        assert_unique(params, 20)
        assert report.repaired is True
        assert report.attempts == 3
        assert report.errors

    @pytest.mark.parametrize("count", [5, 33, 120, 200])
    def test_garbage_any_count(self, job, count):
        ctx = GenerationContext(run_seed=count)
        proposer = ScriptedProposer(RuntimeError("down"))
        params, _ = generate_param_sets(job, proposer, count, rules_for(count), "exploration", (), ctx)
        assert_unique(params, count)

    def test_failed_repair_keeps_previous_valid(self, job, ctx):
        good = spread(19)
        first = [wire(p) for p in good] + [{"params": {"vibe": "gothic"}}]
        proposer = ScriptedProposer(first, ProposalResult.failure("bad json"))
        params, report = generate_param_sets(job, proposer, 20, rules_for(20), "exploration", (), ctx)
        assert params[:19] == good
        assert_unique(params, 20)
        assert report.repaired is True
        assert "candidates must contain exactly 20 items (got 19)" in report.errors

        _, details = proposer.calls[1]
        assert "candidate[19].vibe invalid: gothic" in details["violations"]
        assert len(details["previous"]) == 19

    def test_proposer_sees_mode_and_focus(self, job, ctx):
        proposer = ScriptedProposer([])
        generate_param_sets(job, proposer, 12, rules_for(12, "exploitation"),
                            "exploitation", ("premium/swiss",), ctx)
        _, details = proposer.calls[0]
        assert details == {"count": 12, "mode": "exploitation", "focus": ["premium/swiss"]}
