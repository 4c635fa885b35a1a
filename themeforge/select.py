"""
themeforge/select.py
Shortlist selection

Greedy diverse top-K:
- walk candidates by score, descending
- the first `free_picks` are taken unconditionally
- later picks need distance >= min_separation to every pick so far
- short shortlists are backfilled by score, ignoring separation

Optional judge re-scoring then replaces aesthetics on the shortlist
and re-ranks it.
"""

from collections import Counter
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import SELECTION_CONFIG
from .logger import logger
from .models import Candidate, JudgeAnnotation, SelectionStats, clamp
from .proposer import AestheticJudge, JudgeVerdict, verdict_from_payload
from .score import dna_distance


def min_distance_to_set(candidate: Candidate, selected: Sequence[Candidate]) -> float:
    """Distance to the nearest already-selected candidate (inf if none)."""
    if not selected:
        return float("inf")
    return min(dna_distance(candidate.design_dna, s.design_dna) for s in selected)


def by_score(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Stable sort, best first."""
    return sorted(candidates, key=lambda c: c.scores.score, reverse=True)


def diverse_top_k_with_backfill(
    candidates: Sequence[Candidate],
    k: int = SELECTION_CONFIG.shortlist_size,
    min_separation: float = SELECTION_CONFIG.min_separation,
    free_picks: int = SELECTION_CONFIG.free_picks,
) -> Tuple[List[Candidate], int]:
    """
    Diverse top-K plus the number of picks that bypassed separation.

    Returns exactly min(k, len(candidates)) distinct candidates.
    """
    ranked = by_score(candidates)
    target = min(k, len(ranked))
    selected: List[Candidate] = []
    taken = set()

    for index, candidate in enumerate(ranked):
        if len(selected) >= target:
            break
        if len(selected) < free_picks or min_distance_to_set(candidate, selected) >= min_separation:
            selected.append(candidate)
            taken.add(index)

    backfilled = 0
    for index, candidate in enumerate(ranked):
        if len(selected) >= target:
            break
        if index in taken:
            continue
        selected.append(candidate)
        taken.add(index)
        backfilled += 1

    if backfilled:
        logger.debug(f"Shortlist backfilled {backfilled} below separation {min_separation}",
                     component="SELECT")
    return selected, backfilled


def diverse_top_k(
    candidates: Sequence[Candidate],
    k: int = SELECTION_CONFIG.shortlist_size,
    min_separation: float = SELECTION_CONFIG.min_separation,
) -> List[Candidate]:
    selected, _ = diverse_top_k_with_backfill(candidates, k, min_separation)
    return selected


def assign_ranks(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Ranks 1..n in the given order."""
    return [c.with_rank(i + 1) for i, c in enumerate(candidates)]


def _judged(candidate: Candidate, judge: AestheticJudge) -> Candidate:
    """
    One candidate through the judge. Raises on a failed call or a verdict
    that cannot be decoded; mappings are read like a raw judge response.
    """
    verdict = judge.judge_aesthetic(candidate.candidate_id, candidate.design_dna)
    if isinstance(verdict, Mapping):
        verdict = verdict_from_payload(verdict)
    if not isinstance(verdict, JudgeVerdict):
        raise TypeError(f"judge returned {type(verdict).__name__}, expected JudgeVerdict")

    scores = candidate.scores
    if verdict.score is not None:
        score = float(verdict.score)
        if np.isfinite(score):
            scores = scores.with_aesthetics(clamp(score, 0.0, 1.0))

    flags = verdict.risk_flags or ()
    if isinstance(flags, str):
        flags = (flags,)
    annotation = JudgeAnnotation(
        provider=judge.provider_name,
        reason=str(verdict.reason) if verdict.reason else None,
        risk_flags=tuple(str(f) for f in flags),
    )
    return candidate.with_scores(scores).with_judge(annotation)


def rescore_with_judge(
    shortlist: Sequence[Candidate],
    judge: AestheticJudge,
) -> List[Candidate]:
    """
    Replace aesthetics with the judge's score, then re-sort and re-rank.

    Each candidate is judged in isolation: a judge error leaves that
    candidate unchanged and the batch continues. A verdict without a
    usable score keeps the prior aesthetics but still records the
    annotation.
    """
    rescored = []
    failures = 0
    for candidate in shortlist:
        try:
            rescored.append(_judged(candidate, judge))
        except Exception as e:
            failures += 1
            logger.warning(f"Judge failed for {candidate.candidate_id}, keeping prior score",
                           component="JUDGE", details=str(e))
            rescored.append(candidate)

    if failures:
        logger.info(f"Judge re-score: {failures}/{len(shortlist)} kept prior score",
                    component="JUDGE")
    return assign_ranks(by_score(rescored))


def selection_stats(selected: Sequence[Candidate], backfilled: int = 0) -> SelectionStats:
    """Pairwise DNA distance summary and family spread of a shortlist."""
    distances = []
    for i, a in enumerate(selected):
        for b in selected[i + 1:]:
            distances.append(dna_distance(a.design_dna, b.design_dna))

    if distances:
        pairwise = {
            "min": float(min(distances)),
            "mean": float(np.mean(distances)),
            "max": float(max(distances)),
        }
    else:
        pairwise = {"min": 0.0, "mean": 0.0, "max": 0.0}

    return SelectionStats(
        pairwise_distances=pairwise,
        family_counts=dict(Counter(c.visual_family_id for c in selected)),
        backfilled=backfilled,
    )


def select_shortlist(
    candidates: Sequence[Candidate],
    judge: Optional[AestheticJudge] = None,
    k: int = SELECTION_CONFIG.shortlist_size,
) -> Tuple[List[Candidate], SelectionStats]:
    """Diverse top-K, ranked, optionally judge re-scored."""
    selected, backfilled = diverse_top_k_with_backfill(candidates, k)
    shortlist = assign_ranks(selected)
    if judge is not None:
        shortlist = rescore_with_judge(shortlist, judge)
    stats = selection_stats(shortlist, backfilled)
    logger.info(f"Shortlisted {len(shortlist)}/{len(candidates)}", component="SELECT",
                details=f"min pair distance {stats.pairwise_distances['min']:.3f}")
    return shortlist, stats
