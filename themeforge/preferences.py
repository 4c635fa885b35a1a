"""
themeforge/preferences.py
Preference stream -> generation config

Seed families come from three places, each normalized on its own:
- explicit family ids on events
- mood/era words found in free-text values
- pinned events (family id, else value)

Seeds are broadened deterministically (era fan-out, then mood fan-out,
then a full mood x era sweep) to max(6, 3 * seeds) focus families.
"""

import math
from dataclasses import replace
from typing import List, Optional, Sequence

from .config import (
    DEFAULT_DENSITY_MIN_EACH,
    DEFAULT_ERA_MAX_REPEAT,
    DEFAULT_FAMILY_COUNT,
    DEFAULT_VARIANTS_PER_FAMILY,
    DERIVED_VIBE_MIN_DISTINCT,
    ERAS,
    FOCUS_FANOUT,
    MAX_FAMILY_COUNT,
    MIN_FAMILY_COUNT,
    MIN_FOCUS_FAMILIES,
    MOODS,
)
from .logger import logger
from .models import DiversityRules, GenerationConfig, PreferenceEvent
from .naming import split_family_id


def normalize_family_id(raw: Optional[str]) -> Optional[str]:
    """'Premium/Swiss ' -> 'premium/swiss'; None unless both parts are registry values."""
    value = str(raw or "").strip().lower()
    if "/" not in value:
        return None
    mood, era = split_family_id(value)
    if mood not in MOODS or era not in ERAS:
        return None
    return f"{mood}/{era}"


def family_from_text(text: Optional[str]) -> Optional[str]:
    """First registry mood and first registry era mentioned anywhere in text."""
    lowered = str(text or "").lower()
    mood = next((m for m in MOODS if m in lowered), None)
    era = next((e for e in ERAS if e in lowered), None)
    if mood is None or era is None:
        return None
    return f"{mood}/{era}"


def _unique(values: Sequence[str]) -> List[str]:
    out: List[str] = []
    for value in values:
        if value not in out:
            out.append(value)
    return out


def broaden_families(seeds: Sequence[str], target: int) -> List[str]:
    """
    Grow seed families to `target` ids.

    For each seed: same mood across eras, then same era across moods.
    Then every mood x era pair in registry order. Empty seeds stay empty.
    """
    out = _unique(seeds)
    if not out:
        # No sweep without a seed: an empty focus keeps a preference-free
        # stream in exploration instead of exploiting the first registry pairs.
        return []

    def add(family: str) -> bool:
        if family not in out:
            out.append(family)
        return len(out) >= target

    full = len(out) >= target
    for seed in list(out):
        if full:
            break
        mood, era = split_family_id(seed)
        for near_era in ERAS:
            if full:
                break
            full = add(f"{mood}/{near_era}")
        for near_mood in MOODS:
            if full:
                break
            full = add(f"{near_mood}/{era}")

    for mood in MOODS:
        for era in ERAS:
            if full:
                break
            full = add(f"{mood}/{era}")

    return out[:target]


def seed_families(events: Sequence[PreferenceEvent]) -> List[str]:
    explicit = [normalize_family_id(e.family_id) for e in events]
    from_text = [family_from_text(e.value) for e in events]
    pinned = [
        normalize_family_id(e.family_id or e.value)
        for e in events
        if e.type == "pin"
    ]
    return _unique([f for f in explicit + from_text + pinned if f])


def derive_config_from_preferences(
    config: Optional[GenerationConfig],
    events: Sequence[PreferenceEvent],
) -> GenerationConfig:
    """
    Translate preference events into a generation config.

    Values set on `config` win over derived ones.
    """
    config = config or GenerationConfig()
    seeds = seed_families(events)
    focus = broaden_families(seeds, max(MIN_FOCUS_FAMILIES, FOCUS_FANOUT * len(seeds)))

    mode = config.mode or ("exploitation" if focus else "exploration")

    family_count = max(
        config.family_count or 0,
        min(MAX_FAMILY_COUNT, max(MIN_FAMILY_COUNT, len(focus) or DEFAULT_FAMILY_COUNT)),
    )
    variants = config.variants_per_family or DEFAULT_VARIANTS_PER_FAMILY
    throughput = family_count * variants

    raw = config.diversity_rules
    rules = DiversityRules(
        density_min_each=(
            raw.density_min_each if raw.density_min_each is not None else DEFAULT_DENSITY_MIN_EACH
        ),
        era_max_repeat=(
            raw.era_max_repeat if raw.era_max_repeat is not None
            else max(DEFAULT_ERA_MAX_REPEAT, math.ceil(throughput / len(ERAS)))
        ),
        vibe_min_distinct=(
            raw.vibe_min_distinct if raw.vibe_min_distinct is not None
            else DERIVED_VIBE_MIN_DISTINCT.get(mode, DERIVED_VIBE_MIN_DISTINCT["exploitation"])
        ),
    )

    logger.info(f"Preferences: {len(seeds)} seeds -> {len(focus)} focus families",
                component="PREFS", details=f"mode={mode}")

    return replace(
        config,
        mode=mode,
        family_count=family_count,
        variants_per_family=variants,
        param_set_count=config.param_set_count or throughput,
        focus_families=tuple(focus),
        diversity_rules=rules,
    )
