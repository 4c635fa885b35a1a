"""
Candidate builders with hand-picked DNA and scores.

Selection and scoring tests need exact distances, so DNA here is built
directly rather than through the jittered builder.
"""
from themeforge.models import (
    ArtifactPaths,
    Candidate,
    CandidateScores,
    DesignDNA,
    Genre,
    Palette,
    ParameterSet,
    Spacing,
    Surfaces,
    Typography,
)


def make_dna(params: ParameterSet, hue: float = 0.0, sat: float = 1.0,
             type_scale: float = 1.0, radius: float = 1.0, spacing: float = 1.0) -> DesignDNA:
    return DesignDNA(
        params=params,
        type_profile="humanist",
        palette=Palette(hue_shift=hue, saturation_scale=sat, lightness_bias=0.0),
        typography=Typography(scale=type_scale, weight_bias=0),
        surfaces=Surfaces(radius_scale=radius, radius_base=10, shadow_depth=2, shadow_opacity=0.12),
        spacing=Spacing(scale=spacing, density=0.82),
    )


def make_candidate(index: int, mood: str = "calm", era: str = "modern",
                   quality: float = 0.8, hue: float = 0.0, sat: float = 1.0,
                   color: str = "monoAccent") -> Candidate:
    """
    A candidate whose four components all equal `quality`, so its
    aggregate score is 0.9 * quality before bonuses.
    """
    params = ParameterSet(mood, era, "comfortable", "soft", "rounded", color)
    return Candidate(
        candidate_id=f"cand_{index + 1:04d}_abcdef",
        generation=1,
        params=params,
        visual_family_id=params.family_id,
        genre=Genre(id=params.family_id, mood=mood, domain="generated", density=0.82),
        design_dna=make_dna(params, hue=hue, sat=sat),
        token_patch={},
        scores=CandidateScores.from_components(quality, quality, quality, quality),
        artifact_paths=ArtifactPaths(
            screenshot=f"/artifacts/evo_test/1/{index + 1}.png",
            qa_report=f"/artifacts/evo_test/1/{index + 1}.qa.json",
        ),
    )
