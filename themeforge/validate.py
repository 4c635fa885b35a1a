"""
themeforge/validate.py
Parameter set validation + generation config normalization

validate_param_sets never raises on bad input: every problem becomes an
entry in the error list, and only individually valid, unique parameter
sets are kept.
"""

import math
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .config import (
    DEFAULT_DENSITY_MIN_EACH,
    DEFAULT_ERA_MAX_REPEAT,
    DEFAULT_PARAM_SET_COUNT,
    DEFAULT_VIBE_MIN_DISTINCT,
    DENSITY_PROFILES,
    ERAS,
    MAX_PARAM_SET_COUNT,
    MIN_PARAM_SET_COUNT,
    MODES,
    MOODS,
    PARAM_ENUMS,
    PARAM_FIELDS,
    VIBE_DISTINCT_FLOOR,
    WIRE_FIELD_NAMES,
)
from .models import (
    DiversityRules,
    GenerationConfig,
    ParameterSet,
    ValidationOutcome,
)

# Keys accepted for each field, in lookup order
_FIELD_ALIASES = {
    "mood": ("mood", "vibe"),
    "era": ("era",),
    "density_profile": ("density_profile", "densityProfile"),
    "elevation_profile": ("elevation_profile", "elevationProfile"),
    "radius_profile": ("radius_profile", "radiusProfile"),
    "color_strategy": ("color_strategy", "colorStrategy"),
}


# =============================================================================
# Coercion
# =============================================================================

def coerce_param_set(raw: Any) -> Optional[ParameterSet]:
    """
    Coerce one proposer element into a ParameterSet.

    Accepts {"params": {...}} or a flat mapping, wire or snake_case keys.
    Missing fields become "" (and then fail membership). Returns None for
    elements that are not mappings at all.
    """
    if isinstance(raw, ParameterSet):
        return raw
    if not isinstance(raw, Mapping):
        return None

    record = raw.get("params") if isinstance(raw.get("params"), Mapping) else raw

    values = {}
    for name in PARAM_FIELDS:
        value = ""
        for key in _FIELD_ALIASES[name]:
            candidate = record.get(key)
            if candidate:
                value = str(candidate)
                break
        values[name] = value
    return ParameterSet(**values)


# =============================================================================
# Validation
# =============================================================================

def validate_param_sets(
    candidates: Any,
    count: int,
    rules: DiversityRules,
) -> ValidationOutcome:
    """
    Validate proposer output against the registry and diversity rules.

    Args:
        candidates: Untrusted proposer output (should be a list)
        count: Exact number of candidates required
        rules: Normalized diversity rules

    Returns:
        ValidationOutcome; ok iff no errors were recorded
    """
    if not isinstance(candidates, (list, tuple)):
        return ValidationOutcome(
            ok=False,
            errors=["candidates must be an array"],
            valid_candidates=[],
        )

    errors: List[str] = []
    if len(candidates) != count:
        errors.append(
            f"candidates must contain exactly {count} items (got {len(candidates)})"
        )

    valid: List[ParameterSet] = []
    signatures = set()

    for index, raw in enumerate(candidates):
        params = coerce_param_set(raw)
        if params is None:
            errors.append(f"candidate[{index}] must be an object")
            continue

        has_local_error = False
        for name in PARAM_FIELDS:
            value = getattr(params, name)
            if value not in PARAM_ENUMS[name]:
                errors.append(
                    f"candidate[{index}].{WIRE_FIELD_NAMES[name]} invalid: {value}"
                )
                has_local_error = True

        signature = params.signature
        if signature in signatures:
            errors.append(f"candidate[{index}] duplicated params set")
            has_local_error = True
        else:
            signatures.add(signature)

        if not has_local_error:
            valid.append(params)

    errors.extend(coverage_errors(valid, rules))

    return ValidationOutcome(ok=not errors, errors=errors, valid_candidates=valid)


def coverage_errors(valid: Sequence[ParameterSet], rules: DiversityRules) -> List[str]:
    """Cross-candidate checks: density coverage, era repeats, distinct moods."""
    errors = []

    density_min_each = max(0, rules.density_min_each or 0)
    if density_min_each > 0:
        for density in DENSITY_PROFILES:
            hits = sum(1 for p in valid if p.density_profile == density)
            if hits < density_min_each:
                errors.append(
                    f"densityProfile={density} must appear at least "
                    f"{density_min_each} times (got {hits})"
                )

    era_max_repeat = max(1, rules.era_max_repeat or 1)
    for era in ERAS:
        hits = sum(1 for p in valid if p.era == era)
        if hits > era_max_repeat:
            errors.append(
                f"era={era} must appear at most {era_max_repeat} times (got {hits})"
            )

    vibe_min_distinct = max(1, rules.vibe_min_distinct or 1)
    distinct = len({p.mood for p in valid})
    if distinct < vibe_min_distinct:
        errors.append(
            f"vibe must contain at least {vibe_min_distinct} distinct values (got {distinct})"
        )

    return errors


# =============================================================================
# Normalization
# =============================================================================

def normalize_mode(mode: Optional[str]) -> str:
    """Known modes pass through; anything else explores."""
    return mode if mode in MODES else MODES[0]


def resolve_count(config: GenerationConfig) -> int:
    """family_count x variants_per_family wins when set, else param_set_count."""
    by_board = (config.family_count or 0) * (config.variants_per_family or 0)
    count = by_board if by_board > 0 else (config.param_set_count or DEFAULT_PARAM_SET_COUNT)
    return max(MIN_PARAM_SET_COUNT, min(MAX_PARAM_SET_COUNT, int(math.floor(count))))


def normalize_focus_families(families: Optional[Sequence[Any]]) -> Tuple[str, ...]:
    """Trim, lowercase, keep only 'a/b' shaped ids, dedup in order."""
    if not isinstance(families, (list, tuple)):
        return ()
    out: List[str] = []
    for family in families:
        value = str(family or "").strip().lower()
        if "/" in value and value not in out:
            out.append(value)
    return tuple(out)


def normalize_diversity_rules(
    raw: Optional[DiversityRules],
    count: int,
    mode: str,
) -> DiversityRules:
    """
    Make diversity rules satisfiable for `count` candidates.

    - era_max_repeat is raised so a uniform era spread always fits
    - density_min_each is 0 when count < number of density values
    - vibe_min_distinct is clamped to [mode floor, min(moods, count)]

    Idempotent: normalizing normalized rules changes nothing.
    """
    raw = raw or DiversityRules()
    mode = normalize_mode(mode)

    era_spread = max(DEFAULT_ERA_MAX_REPEAT, math.ceil(count / len(ERAS)))
    era_max_repeat = raw.era_max_repeat if raw.era_max_repeat is not None else DEFAULT_ERA_MAX_REPEAT
    era_max_repeat = max(era_max_repeat, era_spread)

    if count >= len(DENSITY_PROFILES):
        density_min_each = (
            raw.density_min_each if raw.density_min_each is not None else DEFAULT_DENSITY_MIN_EACH
        )
        density_min_each = max(0, density_min_each)
    else:
        density_min_each = 0

    vibe = raw.vibe_min_distinct if raw.vibe_min_distinct is not None else DEFAULT_VIBE_MIN_DISTINCT
    vibe = min(max(vibe, VIBE_DISTINCT_FLOOR[mode]), len(MOODS), count)

    return DiversityRules(
        density_min_each=density_min_each,
        era_max_repeat=era_max_repeat,
        vibe_min_distinct=vibe,
    )


def normalize_generation_config(config: GenerationConfig) -> GenerationConfig:
    """Resolve count, mode, focus families and rules. Idempotent."""
    count = resolve_count(config)
    mode = normalize_mode(config.mode)
    return replace(
        config,
        param_set_count=count,
        mode=mode,
        focus_families=normalize_focus_families(config.focus_families),
        diversity_rules=normalize_diversity_rules(config.diversity_rules, count, mode),
    )
