"""
themeforge/dna.py
Design DNA builder

Maps a validated ParameterSet to continuous style coefficients:
preset lookup per axis, then bounded uniform jitter on six coefficients,
each clamped to its documented range.
"""

from typing import Dict

from .config import DEFAULT_TYPE_PROFILE, DNA_JITTER, preset_for
from .models import (
    DesignDNA,
    Palette,
    ParameterSet,
    Spacing,
    Surfaces,
    Typography,
    clamp,
)
from .seeds import GenerationContext


def _jittered(name: str, base: float, context: GenerationContext) -> float:
    half_width, lo, hi = DNA_JITTER[name]
    return clamp(base + context.jitter(half_width), lo, hi)


def build_design_dna(params: ParameterSet, context: GenerationContext) -> DesignDNA:
    """
    Build DNA for one parameter set.

    The type profile is always DEFAULT_TYPE_PROFILE; it is not derived
    from the parameter set.

    Args:
        params: Registry-valid parameter set
        context: Random source for jitter

    Returns:
        DesignDNA (not reproducible unless the context is seeded)
    """
    density = preset_for("density_profile", params.density_profile)
    elevation = preset_for("elevation_profile", params.elevation_profile)
    radius = preset_for("radius_profile", params.radius_profile)
    color = preset_for("color_strategy", params.color_strategy)
    type_profile = DEFAULT_TYPE_PROFILE
    type_preset = preset_for("type_profile", type_profile)

    # Draw order is fixed so seeded runs stay reproducible
    hue_shift = _jittered("hue_shift", color["hue_shift"], context)
    saturation_scale = _jittered("saturation_scale", color["saturation_scale"], context)
    lightness_bias = _jittered("lightness_bias", color["lightness_bias"], context)
    type_scale = _jittered("type_scale", type_preset["type_scale"], context)
    spacing_scale = _jittered("spacing_scale", density["spacing_scale"], context)
    radius_scale = _jittered("radius_scale", radius["radius_scale"], context)

    return DesignDNA(
        params=params,
        type_profile=type_profile,
        palette=Palette(
            hue_shift=hue_shift,
            saturation_scale=saturation_scale,
            lightness_bias=lightness_bias,
        ),
        typography=Typography(
            scale=type_scale,
            weight_bias=type_preset["weight_bias"],
        ),
        surfaces=Surfaces(
            radius_scale=radius_scale,
            radius_base=radius["radius_base"],
            shadow_depth=elevation["shadow_depth"],
            shadow_opacity=elevation["shadow_opacity"],
        ),
        spacing=Spacing(
            scale=spacing_scale,
            density=density["density"],
        ),
    )


def token_patch(dna: DesignDNA) -> Dict[str, float]:
    """Flatten DNA into CSS-variable style token overrides."""
    return {
        "--hue-shift": round(dna.palette.hue_shift, 2),
        "--sat-scale": round(dna.palette.saturation_scale, 3),
        "--lightness-bias": round(dna.palette.lightness_bias, 3),
        "--type-scale": round(dna.typography.scale, 3),
        "--weight-bias": int(round(dna.typography.weight_bias)),
        "--radius-scale": round(dna.surfaces.radius_scale, 3),
        "--radius-base": dna.surfaces.radius_base,
        "--shadow-depth": dna.surfaces.shadow_depth,
        "--shadow-opacity": round(dna.surfaces.shadow_opacity, 2),
        "--spacing-scale": round(dna.spacing.scale, 3),
        "--density": round(dna.spacing.density, 3),
    }
