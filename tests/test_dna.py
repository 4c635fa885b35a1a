"""
Tests for themeforge/dna.py
Design DNA construction and token patches
"""

import itertools

import pytest

from themeforge.config import DNA_JITTER, PARAM_ENUMS, PARAM_FIELDS
from themeforge.dna import build_design_dna, token_patch
from themeforge.models import ParameterSet
from themeforge.seeds import GenerationContext

EPS = 1e-9


def _ranges(dna):
    return {
        "hue_shift": dna.palette.hue_shift,
        "saturation_scale": dna.palette.saturation_scale,
        "lightness_bias": dna.palette.lightness_bias,
        "type_scale": dna.typography.scale,
        "spacing_scale": dna.spacing.scale,
        "radius_scale": dna.surfaces.radius_scale,
    }


class TestBuildDesignDNA:
    """Preset lookup + jitter."""

    def test_keeps_params(self, sample_params, ctx):
        dna = build_design_dna(sample_params, ctx)
        assert dna.params == sample_params

    def test_type_profile_always_humanist(self, ctx):
        for values in itertools.islice(
            itertools.product(*(PARAM_ENUMS[f] for f in PARAM_FIELDS)), 0, 9072, 97
        ):
            assert build_design_dna(ParameterSet(*values), ctx).type_profile == "humanist"

    def test_fixed_preset_fields(self, sample_params, ctx):
        dna = build_design_dna(sample_params, ctx)
        assert dna.surfaces.radius_base == 10
        assert dna.surfaces.shadow_depth == 2
        assert dna.surfaces.shadow_opacity == 0.12
        assert dna.spacing.density == 0.82
        assert dna.typography.weight_bias == 0

    def test_jitter_stays_near_preset(self, sample_params):
        for seed in range(50):
            dna = build_design_dna(sample_params, GenerationContext(run_seed=seed))
            assert abs(dna.palette.hue_shift - 8) <= 3 + EPS
            assert abs(dna.palette.saturation_scale - 1.0) <= 0.05 + EPS
            assert abs(dna.typography.scale - 1.02) <= 0.03 + EPS
            assert abs(dna.spacing.scale - 1.0) <= 0.03 + EPS
            assert abs(dna.surfaces.radius_scale - 1.0) <= 0.05 + EPS

    def test_values_within_clamp_ranges(self):
        ctx = GenerationContext(run_seed=7)
        extremes = [
            ParameterSet("bold", "y2k", "airy", "dramatic", "pill", "neon"),
            ParameterSet("calm", "swiss", "compact", "flat", "sharp", "earthTone"),
            ParameterSet("playful", "retro", "comfortable", "crisp", "rounded", "pastel"),
        ]
        for params in extremes:
            for _ in range(30):
                dna = build_design_dna(params, ctx)
                for name, value in _ranges(dna).items():
                    _, lo, hi = DNA_JITTER[name]
                    assert lo <= value <= hi, name

    def test_seeded_builds_are_reproducible(self, sample_params):
        a = build_design_dna(sample_params, GenerationContext(run_seed=3))
        b = build_design_dna(sample_params, GenerationContext(run_seed=3))
        assert a == b

    def test_distance_vector(self, sample_params, ctx):
        dna = build_design_dna(sample_params, ctx)
        vec = dna.to_array()
        assert vec.shape == (5,)
        assert vec[0] == pytest.approx(dna.palette.hue_shift / 30)


class TestTokenPatch:

    def test_keys(self, sample_params, ctx):
        patch = token_patch(build_design_dna(sample_params, ctx))
        assert set(patch) == {
            "--hue-shift", "--sat-scale", "--lightness-bias", "--type-scale",
            "--weight-bias", "--radius-scale", "--radius-base", "--shadow-depth",
            "--shadow-opacity", "--spacing-scale", "--density",
        }

    def test_rounding(self, sample_params, ctx):
        dna = build_design_dna(sample_params, ctx)
        patch = token_patch(dna)
        assert patch["--hue-shift"] == round(dna.palette.hue_shift, 2)
        assert patch["--type-scale"] == round(dna.typography.scale, 3)
        assert isinstance(patch["--weight-bias"], int)

    def test_pure(self, sample_params, ctx):
        """Same DNA value, same patch."""
        dna = build_design_dna(sample_params, ctx)
        assert token_patch(dna) == token_patch(dna)
