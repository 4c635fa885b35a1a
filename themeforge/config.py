"""
themeforge/config.py
Configuration constants for the theme evolution pipeline

Enumeration Registry (closed value lists + presets), score weights,
selection and repair settings.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

# =============================================================================
# Version
# =============================================================================

RESULT_SCHEMA_VERSION = "1.0"

# =============================================================================
# Enumeration Registry
# =============================================================================

# IMPORTANT: Order is stable - append only
# Local generation and family broadening walk these lists in order
MOODS: Tuple[str, ...] = (
    "calm", "bold", "playful", "premium", "industrial", "minimal", "editorial",
)
ERAS: Tuple[str, ...] = (
    "modern", "y2k", "retro", "neo-brutalist", "swiss", "bauhaus",
)
DENSITY_PROFILES: Tuple[str, ...] = ("compact", "comfortable", "airy")
ELEVATION_PROFILES: Tuple[str, ...] = ("flat", "soft", "crisp", "dramatic")
RADIUS_PROFILES: Tuple[str, ...] = ("sharp", "rounded", "pill")
COLOR_STRATEGIES: Tuple[str, ...] = (
    "monoAccent", "dualAccent", "pastel", "highContrast", "earthTone", "neon",
)

TYPE_PROFILES: Tuple[str, ...] = (
    "neoGrotesk", "humanist", "geometric", "serifEditorial", "monoAccent",
)

# ParameterSet field name -> legal values
PARAM_ENUMS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "mood": MOODS,
    "era": ERAS,
    "density_profile": DENSITY_PROFILES,
    "elevation_profile": ELEVATION_PROFILES,
    "radius_profile": RADIUS_PROFILES,
    "color_strategy": COLOR_STRATEGIES,
})

PARAM_FIELDS: Tuple[str, ...] = tuple(PARAM_ENUMS.keys())

# Wire names used in proposer prompts and client payloads
WIRE_FIELD_NAMES: Mapping[str, str] = MappingProxyType({
    "mood": "vibe",
    "era": "era",
    "density_profile": "densityProfile",
    "elevation_profile": "elevationProfile",
    "radius_profile": "radiusProfile",
    "color_strategy": "colorStrategy",
})

# =============================================================================
# Presets
# =============================================================================

PROFILE_PRESETS: Mapping[str, Mapping[str, Mapping[str, float]]] = MappingProxyType({
    "density_profile": {
        "compact": {"density": 0.95, "spacing_scale": 0.88},
        "comfortable": {"density": 0.82, "spacing_scale": 1.0},
        "airy": {"density": 0.68, "spacing_scale": 1.12},
    },
    "elevation_profile": {
        "flat": {"shadow_depth": 0, "shadow_opacity": 0.0},
        "soft": {"shadow_depth": 2, "shadow_opacity": 0.12},
        "crisp": {"shadow_depth": 3, "shadow_opacity": 0.18},
        "dramatic": {"shadow_depth": 4, "shadow_opacity": 0.24},
    },
    "radius_profile": {
        "sharp": {"radius_scale": 0.75, "radius_base": 4},
        "rounded": {"radius_scale": 1.0, "radius_base": 10},
        "pill": {"radius_scale": 1.35, "radius_base": 16},
    },
    "type_profile": {
        "neoGrotesk": {"type_scale": 1.0, "weight_bias": 40},
        "humanist": {"type_scale": 1.02, "weight_bias": 0},
        "geometric": {"type_scale": 1.03, "weight_bias": 20},
        "serifEditorial": {"type_scale": 1.05, "weight_bias": -10},
        "monoAccent": {"type_scale": 0.98, "weight_bias": 70},
    },
    "color_strategy": {
        "monoAccent": {"hue_shift": 8, "saturation_scale": 1.0, "lightness_bias": 0.0},
        "dualAccent": {"hue_shift": 20, "saturation_scale": 1.1, "lightness_bias": 0.0},
        "pastel": {"hue_shift": -8, "saturation_scale": 0.82, "lightness_bias": 0.08},
        "highContrast": {"hue_shift": 0, "saturation_scale": 1.2, "lightness_bias": -0.04},
        "earthTone": {"hue_shift": -18, "saturation_scale": 0.9, "lightness_bias": -0.02},
        "neon": {"hue_shift": 28, "saturation_scale": 1.28, "lightness_bias": 0.02},
    },
})

# Resolved for every parameter set (see DESIGN.md open questions)
DEFAULT_TYPE_PROFILE = "humanist"


class UnknownEnumValue(KeyError):
    """Raised when a lookup names an axis or value outside the registry."""
    pass


def enum_values(axis: str) -> Tuple[str, ...]:
    """Return the closed value list for a parameter axis."""
    try:
        return PARAM_ENUMS[axis]
    except KeyError:
        raise UnknownEnumValue(f"unknown parameter axis: {axis}") from None


def preset_for(axis: str, value: str) -> Mapping[str, float]:
    """
    Look up preset coefficients for an axis value.

    Mood and era carry no numeric preset; asking for them raises.
    """
    table = PROFILE_PRESETS.get(axis)
    if table is None:
        raise UnknownEnumValue(f"axis '{axis}' has no presets")
    if value not in table:
        raise UnknownEnumValue(f"{axis}={value} is not a registry value")
    return MappingProxyType(table[value])


def wire_enums() -> Dict[str, list]:
    """Registry keyed by wire names, as sent to proposers and clients."""
    return {WIRE_FIELD_NAMES[k]: list(v) for k, v in PARAM_ENUMS.items()}


# =============================================================================
# Design DNA ranges + jitter
# =============================================================================

# (jitter half-width, clamp min, clamp max)
DNA_JITTER = MappingProxyType({
    "hue_shift": (3.0, -30.0, 30.0),
    "saturation_scale": (0.05, 0.75, 1.35),
    "lightness_bias": (0.02, -0.12, 0.12),
    "type_scale": (0.03, 0.85, 1.35),
    "spacing_scale": (0.03, 0.8, 1.35),
    "radius_scale": (0.05, 0.65, 1.7),
})

HUE_DISTANCE_SCALE = 30.0

# =============================================================================
# Scoring
# =============================================================================

SCORE_WEIGHTS = MappingProxyType({
    "readability": 0.25,
    "layout_safety": 0.20,
    "brand_consistency": 0.20,
    "aesthetics": 0.25,
})

# Component jitter half-widths
READABILITY_JITTER = 0.08
LAYOUT_JITTER = 0.08
BRAND_JITTER = 0.09
AESTHETICS_JITTER = 0.09

DIVERSITY_BONUS_SCALE = 0.15
DIVERSITY_BONUS_MAX = 0.1
EXPLOITATION_BOOST = 0.06

# =============================================================================
# Diversity Rules
# =============================================================================

DEFAULT_DENSITY_MIN_EACH = 1
DEFAULT_ERA_MAX_REPEAT = 2
DEFAULT_VIBE_MIN_DISTINCT = 5

# Lowest vibe_min_distinct a mode accepts
VIBE_DISTINCT_FLOOR = MappingProxyType({
    "exploration": 5,
    "exploitation": 2,
})

# =============================================================================
# Generation
# =============================================================================

MODES: Tuple[str, ...] = ("exploration", "exploitation")

DEFAULT_PARAM_SET_COUNT = 20
MIN_PARAM_SET_COUNT = 5
MAX_PARAM_SET_COUNT = 200


@dataclass(frozen=True)
class RepairConfig:
    """Proposer retry budget + local generator settings."""
    max_attempts: int = 3            # 1 proposal + 2 repairs
    focus_bias: float = 0.72         # P(pick a focus family) in exploitation
    attempts_per_candidate: int = 100
    backfill_pool_factor: int = 2


REPAIR_CONFIG = RepairConfig()

# =============================================================================
# Selection
# =============================================================================

@dataclass(frozen=True)
class SelectionConfig:
    """Shortlist + board settings."""
    shortlist_size: int = 5
    min_separation: float = 0.12
    # Picks taken regardless of separation
    free_picks: int = 2
    default_variants_per_family: int = 4


SELECTION_CONFIG = SelectionConfig()

# =============================================================================
# Preference translation
# =============================================================================

MIN_FOCUS_FAMILIES = 6
FOCUS_FANOUT = 3
MIN_FAMILY_COUNT = 3
MAX_FAMILY_COUNT = 8
DEFAULT_FAMILY_COUNT = 4
DEFAULT_VARIANTS_PER_FAMILY = 4
DERIVED_VIBE_MIN_DISTINCT = MappingProxyType({
    "exploration": 5,
    "exploitation": 3,
})

# =============================================================================
# Judge
# =============================================================================

FALLBACK_AESTHETIC_SCORE = 0.75
