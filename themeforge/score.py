"""
themeforge/score.py
Candidate scoring

Component scores are rule bases plus bounded jitter. Diversity bonus and
exploitation boost are separate stages applied to the whole population;
each returns new Candidate values.
"""

from typing import List, Sequence

import numpy as np

from .config import (
    AESTHETICS_JITTER,
    BRAND_JITTER,
    DIVERSITY_BONUS_MAX,
    DIVERSITY_BONUS_SCALE,
    EXPLOITATION_BOOST,
    LAYOUT_JITTER,
    READABILITY_JITTER,
)
from .logger import logger
from .models import Candidate, CandidateScores, DesignDNA, clamp
from .seeds import GenerationContext


# =============================================================================
# Rule bases
# =============================================================================

def readability_base(color_strategy: str) -> float:
    if color_strategy == "highContrast":
        return 0.90
    if color_strategy == "neon":
        return 0.72
    return 0.82


def layout_safety_base(density_profile: str) -> float:
    return 0.78 if density_profile == "compact" else 0.86


def brand_consistency_base(mood: str) -> float:
    return 0.88 if mood in ("minimal", "premium") else 0.80


def aesthetics_base(era: str) -> float:
    return 0.80 if era in ("y2k", "neo-brutalist") else 0.85


def score_dna(dna: DesignDNA, context: GenerationContext) -> CandidateScores:
    """Initial component scores for one candidate's DNA."""
    params = dna.params
    return CandidateScores.from_components(
        readability=clamp(readability_base(params.color_strategy)
                          + context.jitter(READABILITY_JITTER), 0.0, 1.0),
        layout_safety=clamp(layout_safety_base(params.density_profile)
                            + context.jitter(LAYOUT_JITTER), 0.0, 1.0),
        brand_consistency=clamp(brand_consistency_base(params.mood)
                                + context.jitter(BRAND_JITTER), 0.0, 1.0),
        aesthetics=clamp(aesthetics_base(params.era)
                         + context.jitter(AESTHETICS_JITTER), 0.0, 1.0),
    )


# =============================================================================
# Distance
# =============================================================================

def dna_distance(a: DesignDNA, b: DesignDNA) -> float:
    """Mean absolute difference of the five DNA distance coordinates."""
    return float(np.mean(np.abs(a.to_array() - b.to_array())))


def nearest_neighbor_distances(candidates: Sequence[Candidate]) -> np.ndarray:
    """
    For each candidate, distance to its closest other candidate.

    Identity is by position, so duplicated DNA still counts as a neighbor
    at distance 0.
    """
    n = len(candidates)
    if n < 2:
        return np.zeros(n)
    vectors = np.stack([c.design_dna.to_array() for c in candidates])
    # (n, n) pairwise mean-abs distance
    pairwise = np.mean(np.abs(vectors[:, None, :] - vectors[None, :, :]), axis=2)
    np.fill_diagonal(pairwise, np.inf)
    return pairwise.min(axis=1)


# =============================================================================
# Population stages
# =============================================================================

def with_diversity_bonus(candidates: Sequence[Candidate]) -> List[Candidate]:
    """bonus = clamp(nearest-neighbor distance * 0.15, 0, 0.1)"""
    nearest = nearest_neighbor_distances(candidates)
    out = []
    for candidate, distance in zip(candidates, nearest):
        bonus = clamp(float(distance) * DIVERSITY_BONUS_SCALE, 0.0, DIVERSITY_BONUS_MAX)
        out.append(candidate.with_scores(candidate.scores.with_diversity_bonus(bonus)))
    return out


def with_exploitation_boost(
    candidates: Sequence[Candidate],
    focus_families: Sequence[str],
    mode: str,
) -> List[Candidate]:
    """Add a flat boost to focus-family members in exploitation mode."""
    if mode != "exploitation" or not focus_families:
        return list(candidates)

    focused = set(focus_families)
    out = []
    boosted = 0
    for candidate in candidates:
        if candidate.visual_family_id in focused:
            candidate = candidate.with_scores(
                candidate.scores.with_focus_boost(EXPLOITATION_BOOST)
            )
            boosted += 1
        out.append(candidate)

    logger.debug(f"Exploitation boost applied to {boosted}/{len(out)}", component="SCORE")
    return out
