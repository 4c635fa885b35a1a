"""
themeforge/models.py
Core data models for theme evolution

Candidates and their parts are value types: every pipeline stage returns
new instances (dataclasses.replace) instead of mutating shared ones.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .config import (
    HUE_DISTANCE_SCALE,
    PARAM_FIELDS,
    RESULT_SCHEMA_VERSION,
    SCORE_WEIGHTS,
    WIRE_FIELD_NAMES,
)


def _pick(d: Mapping[str, Any], *keys: str, default=None):
    """First present, non-None value among alias keys."""
    for key in keys:
        value = d.get(key)
        if value is not None:
            return value
    return default


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# =============================================================================
# ParameterSet
# =============================================================================

@dataclass(frozen=True)
class ParameterSet:
    """
    Six-axis, enum-constrained description of a visual style.

    Membership is checked by validate.validate_param_sets, not here:
    proposer output is coerced into this shape before it is judged.
    """
    mood: str
    era: str
    density_profile: str
    elevation_profile: str
    radius_profile: str
    color_strategy: str

    @property
    def signature(self) -> str:
        """Dedup key: all six values in registry order."""
        return "|".join(getattr(self, f) for f in PARAM_FIELDS)

    @property
    def family_id(self) -> str:
        """Visual family: the mood/era pair."""
        return f"{self.mood}/{self.era}"

    def to_dict(self) -> dict:
        return {f: getattr(self, f) for f in PARAM_FIELDS}

    def to_wire_dict(self) -> dict:
        """Field names as proposers and clients spell them."""
        return {WIRE_FIELD_NAMES[f]: getattr(self, f) for f in PARAM_FIELDS}


# =============================================================================
# DesignDNA
# =============================================================================

@dataclass(frozen=True)
class Palette:
    hue_shift: float
    saturation_scale: float
    lightness_bias: float


@dataclass(frozen=True)
class Typography:
    scale: float
    weight_bias: float


@dataclass(frozen=True)
class Surfaces:
    radius_scale: float
    radius_base: int
    shadow_depth: int
    shadow_opacity: float


@dataclass(frozen=True)
class Spacing:
    scale: float
    density: float


@dataclass(frozen=True)
class DesignDNA:
    """Continuous style coefficients derived from a ParameterSet plus jitter."""
    params: ParameterSet
    type_profile: str
    palette: Palette
    typography: Typography
    surfaces: Surfaces
    spacing: Spacing

    def to_array(self) -> np.ndarray:
        """Distance vector: hue (scaled to ~unit range), sat, type, radius, spacing."""
        return np.array([
            self.palette.hue_shift / HUE_DISTANCE_SCALE,
            self.palette.saturation_scale,
            self.typography.scale,
            self.surfaces.radius_scale,
            self.spacing.scale,
        ], dtype=np.float64)

    def to_dict(self) -> dict:
        return {
            "params": self.params.to_dict(),
            "resolved_profiles": {"type_profile": self.type_profile},
            "palette": {
                "hue_shift": self.palette.hue_shift,
                "saturation_scale": self.palette.saturation_scale,
                "lightness_bias": self.palette.lightness_bias,
            },
            "typography": {
                "scale": self.typography.scale,
                "weight_bias": self.typography.weight_bias,
            },
            "surfaces": {
                "radius_scale": self.surfaces.radius_scale,
                "radius_base": self.surfaces.radius_base,
                "shadow_depth": self.surfaces.shadow_depth,
                "shadow_opacity": self.surfaces.shadow_opacity,
            },
            "spacing": {
                "scale": self.spacing.scale,
                "density": self.spacing.density,
            },
        }


# =============================================================================
# CandidateScores
# =============================================================================

@dataclass(frozen=True)
class CandidateScores:
    """
    Component scores plus the aggregate derived from them.

    score = clamp(weighted components + diversity_bonus + focus_boost, 0, 1)

    A judge re-score (with_aesthetics) clears focus_boost: the judged
    aggregate is the weighted components plus the diversity bonus only.

    Always build through from_components() or the with_* helpers so the
    aggregate never drifts from its components.
    """
    readability: float
    layout_safety: float
    brand_consistency: float
    aesthetics: float
    diversity_bonus: float = 0.0
    focus_boost: float = 0.0
    score: float = 0.0

    @classmethod
    def from_components(
        cls,
        readability: float,
        layout_safety: float,
        brand_consistency: float,
        aesthetics: float,
        diversity_bonus: float = 0.0,
        focus_boost: float = 0.0,
    ) -> "CandidateScores":
        weighted = (
            SCORE_WEIGHTS["readability"] * readability +
            SCORE_WEIGHTS["layout_safety"] * layout_safety +
            SCORE_WEIGHTS["brand_consistency"] * brand_consistency +
            SCORE_WEIGHTS["aesthetics"] * aesthetics
        )
        return cls(
            readability=readability,
            layout_safety=layout_safety,
            brand_consistency=brand_consistency,
            aesthetics=aesthetics,
            diversity_bonus=diversity_bonus,
            focus_boost=focus_boost,
            score=clamp(weighted + diversity_bonus + focus_boost, 0.0, 1.0),
        )

    def _rebuild(self, **changes) -> "CandidateScores":
        values = {
            "readability": self.readability,
            "layout_safety": self.layout_safety,
            "brand_consistency": self.brand_consistency,
            "aesthetics": self.aesthetics,
            "diversity_bonus": self.diversity_bonus,
            "focus_boost": self.focus_boost,
        }
        values.update(changes)
        return CandidateScores.from_components(**values)

    def with_diversity_bonus(self, bonus: float) -> "CandidateScores":
        return self._rebuild(diversity_bonus=bonus)

    def with_focus_boost(self, boost: float) -> "CandidateScores":
        return self._rebuild(focus_boost=boost)

    def with_aesthetics(self, aesthetics: float) -> "CandidateScores":
        return self._rebuild(aesthetics=aesthetics, focus_boost=0.0)

    def to_dict(self) -> dict:
        return {
            "readability": self.readability,
            "layout_safety": self.layout_safety,
            "brand_consistency": self.brand_consistency,
            "aesthetics": self.aesthetics,
            "diversity_bonus": self.diversity_bonus,
            "focus_boost": self.focus_boost,
            "score": self.score,
        }


# =============================================================================
# Candidate
# =============================================================================

@dataclass(frozen=True)
class Genre:
    id: str
    mood: str
    domain: str
    density: float


@dataclass(frozen=True)
class ArtifactPaths:
    """Placeholders; rendering happens outside this package."""
    screenshot: str
    qa_report: str


@dataclass(frozen=True)
class JudgeAnnotation:
    provider: str
    reason: Optional[str]
    risk_flags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Candidate:
    """A scored design candidate."""
    # Identity
    candidate_id: str          # "cand_0001_ab12cd"
    generation: int
    params: ParameterSet
    visual_family_id: str      # "premium/swiss"
    genre: Genre

    design_dna: DesignDNA
    token_patch: Mapping[str, float]
    scores: CandidateScores
    artifact_paths: ArtifactPaths

    # Selection state
    rank: Optional[int] = None
    judge: Optional[JudgeAnnotation] = None

    def with_scores(self, scores: CandidateScores) -> "Candidate":
        return replace(self, scores=scores)

    def with_rank(self, rank: int) -> "Candidate":
        return replace(self, rank=rank)

    def with_judge(self, judge: JudgeAnnotation) -> "Candidate":
        return replace(self, judge=judge)

    def to_dict(self) -> dict:
        return {
            "candidate_id": self.candidate_id,
            "generation": self.generation,
            "params": self.params.to_dict(),
            "visual_family_id": self.visual_family_id,
            "genre": {
                "id": self.genre.id,
                "mood": self.genre.mood,
                "domain": self.genre.domain,
                "density": self.genre.density,
            },
            "design_dna": self.design_dna.to_dict(),
            "token_patch": dict(self.token_patch),
            "scores": self.scores.to_dict(),
            "artifact_paths": {
                "screenshot": self.artifact_paths.screenshot,
                "qa_report": self.artifact_paths.qa_report,
            },
            "rank": self.rank,
            "judge": {
                "provider": self.judge.provider,
                "reason": self.judge.reason,
                "risk_flags": list(self.judge.risk_flags),
            } if self.judge else None,
        }


# =============================================================================
# Generation configuration
# =============================================================================

@dataclass(frozen=True)
class DiversityRules:
    """Coverage constraints over a candidate batch. None = use default."""
    density_min_each: Optional[int] = None
    era_max_repeat: Optional[int] = None
    vibe_min_distinct: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "density_min_each": self.density_min_each,
            "era_max_repeat": self.era_max_repeat,
            "vibe_min_distinct": self.vibe_min_distinct,
        }

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "DiversityRules":
        d = d or {}
        return cls(
            density_min_each=_optional_int(_pick(d, "density_min_each", "densityMinEach")),
            era_max_repeat=_optional_int(_pick(d, "era_max_repeat", "eraMaxRepeat")),
            vibe_min_distinct=_optional_int(_pick(d, "vibe_min_distinct", "vibeMinDistinct")),
        )


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class GenerationConfig:
    """What a client asked for. See validate.normalize_generation_config."""
    param_set_count: Optional[int] = None
    family_count: Optional[int] = None
    variants_per_family: Optional[int] = None
    mode: Optional[str] = None
    focus_families: Tuple[str, ...] = ()
    diversity_rules: DiversityRules = field(default_factory=DiversityRules)
    llm_provider: Optional[str] = None
    use_llm_aesthetic: bool = False

    def to_dict(self) -> dict:
        return {
            "param_set_count": self.param_set_count,
            "family_count": self.family_count,
            "variants_per_family": self.variants_per_family,
            "mode": self.mode,
            "focus_families": list(self.focus_families),
            "diversity_rules": self.diversity_rules.to_dict(),
            "llm_provider": self.llm_provider,
            "use_llm_aesthetic": self.use_llm_aesthetic,
        }

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "GenerationConfig":
        d = d or {}
        focus = _pick(d, "focus_families", "focusFamilies", default=())
        if not isinstance(focus, (list, tuple)):
            focus = ()
        return cls(
            param_set_count=_optional_int(_pick(d, "param_set_count", "paramSetCount")),
            family_count=_optional_int(_pick(d, "family_count", "familyCount")),
            variants_per_family=_optional_int(_pick(d, "variants_per_family", "variantsPerFamily")),
            mode=_pick(d, "mode"),
            focus_families=tuple(str(f) for f in focus),
            diversity_rules=DiversityRules.from_dict(_pick(d, "diversity_rules", "diversityRules")),
            llm_provider=_pick(d, "llm_provider", "llmProvider"),
            use_llm_aesthetic=bool(_pick(d, "use_llm_aesthetic", "useLLMAesthetic", default=False)),
        )


@dataclass(frozen=True)
class EvolutionJob:
    """Job descriptor handed in by the job store."""
    job_id: str
    base_theme_id: str
    target_ui_id: str
    config: GenerationConfig


# =============================================================================
# Validation
# =============================================================================

@dataclass
class ValidationOutcome:
    """Result of one validate_param_sets() call."""
    ok: bool
    errors: List[str]
    valid_candidates: List[ParameterSet]


@dataclass(frozen=True)
class ValidationReport:
    """How the parameter sets were obtained, for observability."""
    repaired: bool
    attempts: int
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "repaired": self.repaired,
            "attempts": self.attempts,
            "errors": list(self.errors),
        }


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class SelectionStats:
    """Spread of a shortlist, for reports."""
    pairwise_distances: Dict[str, float]   # min / mean / max
    family_counts: Dict[str, int]
    backfilled: int = 0                    # picks taken below min separation

    def to_dict(self) -> dict:
        return {
            "pairwise_distances": dict(self.pairwise_distances),
            "family_counts": dict(self.family_counts),
            "backfilled": self.backfilled,
        }


@dataclass(frozen=True)
class FamilyGroup:
    family_id: str
    label: str
    candidates: Tuple[Candidate, ...]

    def to_dict(self) -> dict:
        return {
            "family_id": self.family_id,
            "label": self.label,
            "candidates": [c.to_dict() for c in self.candidates],
        }


@dataclass(frozen=True)
class EvolutionResult:
    """Everything one run produces; persisted by the job store as a unit."""
    total_candidates: int
    top_candidates: Tuple[Candidate, ...]
    all_candidates: Tuple[Candidate, ...]
    family_board: Tuple[FamilyGroup, ...]
    provider: Mapping[str, Any]
    count: int
    mode: str
    diversity_rules: DiversityRules
    validation: ValidationReport
    enums: Mapping[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "version": RESULT_SCHEMA_VERSION,
            "total_candidates": self.total_candidates,
            "top_candidates": [c.to_dict() for c in self.top_candidates],
            "all_candidates": [c.to_dict() for c in self.all_candidates],
            "family_board": [g.to_dict() for g in self.family_board],
            "provider": dict(self.provider),
            "param_generation": {
                "count": self.count,
                "mode": self.mode,
                "enums": {k: list(v) for k, v in self.enums.items()},
                "diversity_rules": self.diversity_rules.to_dict(),
                "validation": self.validation.to_dict(),
            },
        }

    def summary(self) -> dict:
        return {
            "total_candidates": self.total_candidates,
            "top_candidates": len(self.top_candidates),
            "board_families": len(self.family_board),
            "repaired": self.validation.repaired,
        }


# =============================================================================
# Preference stream
# =============================================================================

@dataclass(frozen=True)
class PreferenceEvent:
    """One user interaction. Every field is optional."""
    type: Optional[str] = None        # like / dislike / pin / anything else
    value: Optional[str] = None
    family_id: Optional[str] = None
    weight: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": self.value,
            "family_id": self.family_id,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, d: Any) -> "PreferenceEvent":
        if not isinstance(d, Mapping):
            return cls()
        weight = _pick(d, "weight")
        try:
            weight = float(weight) if weight is not None else None
        except (TypeError, ValueError):
            weight = None
        value = _pick(d, "value")
        family_id = _pick(d, "family_id", "familyId")
        return cls(
            type=_pick(d, "type"),
            value=str(value) if value is not None else None,
            family_id=str(family_id) if family_id is not None else None,
            weight=weight,
        )


@dataclass(frozen=True)
class StreamRequest:
    target_ui_id: str = "default-ui"
    base_theme_id: str = "default"
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    preference_stream: Tuple[PreferenceEvent, ...] = ()

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "StreamRequest":
        d = d or {}
        events = _pick(d, "preference_stream", "preferenceStream", default=())
        if not isinstance(events, (list, tuple)):
            events = ()
        return cls(
            target_ui_id=_pick(d, "target_ui_id", "targetUiId", default="default-ui"),
            base_theme_id=_pick(d, "base_theme_id", "baseThemeId", default="default"),
            generation_config=GenerationConfig.from_dict(
                _pick(d, "generation_config", "generationConfig")
            ),
            preference_stream=tuple(PreferenceEvent.from_dict(e) for e in events),
        )
