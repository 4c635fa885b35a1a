"""
themeforge/pipeline.py
One evolution run: parameter sets -> candidates -> shortlist -> board

Stage order is fixed:
  generate -> score -> diversity bonus -> exploitation boost ->
  diverse top-K + ranks -> optional judge re-score -> family board
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .board import board_variants, build_family_board
from .config import PROFILE_PRESETS, wire_enums
from .dna import build_design_dna, token_patch
from .generate import generate_param_sets
from .logger import logger
from .models import (
    Candidate,
    EvolutionJob,
    EvolutionResult,
    Genre,
    ParameterSet,
    SelectionStats,
    StreamRequest,
)
from .naming import make_artifact_paths, make_candidate_id, make_job_id, validate_job_id
from .proposer import Gateway, mock_gateway
from .score import score_dna, with_diversity_bonus, with_exploitation_boost
from .seeds import GenerationContext
from .select import select_shortlist
from .validate import normalize_generation_config

GENERATION = 1


@dataclass(frozen=True)
class RunOutput:
    """A result plus run-side details that are not part of the result value."""
    result: EvolutionResult
    selection: SelectionStats
    job: EvolutionJob


def new_job(
    request: StreamRequest,
    job_id: Optional[str] = None,
    stream: bool = False,
) -> EvolutionJob:
    """Job descriptor for a request; a fresh evo_... id unless one is given."""
    job_id = job_id or make_job_id(stream=stream)
    validate_job_id(job_id)
    return EvolutionJob(
        job_id=job_id,
        base_theme_id=request.base_theme_id,
        target_ui_id=request.target_ui_id,
        config=request.generation_config,
    )


def build_candidates(
    job: EvolutionJob,
    params: Sequence[ParameterSet],
    context: GenerationContext,
) -> List[Candidate]:
    """DNA, token patch, initial scores, ids and artifact paths per parameter set."""
    candidates = []
    for index, p in enumerate(params):
        dna = build_design_dna(p, context)
        family_id = p.family_id
        candidates.append(Candidate(
            candidate_id=make_candidate_id(index, context.hex_token()),
            generation=GENERATION,
            params=p,
            visual_family_id=family_id,
            genre=Genre(
                id=family_id,
                mood=p.mood,
                domain="generated",
                density=PROFILE_PRESETS["density_profile"][p.density_profile]["density"],
            ),
            design_dna=dna,
            token_patch=token_patch(dna),
            scores=score_dna(dna, context),
            artifact_paths=make_artifact_paths(job.job_id, GENERATION, index),
        ))
    return candidates


def run_evolution_detailed(
    job: EvolutionJob,
    gateway: Optional[Gateway] = None,
    context: Optional[GenerationContext] = None,
) -> RunOutput:
    """
    Run the full pipeline for one job.

    Args:
        job: Job descriptor
        gateway: Proposer + judge wiring (default: mock)
        context: Random source (default: unseeded)

    Returns:
        RunOutput; unexpected errors propagate to the caller
    """
    gateway = gateway or mock_gateway()
    context = context or GenerationContext()
    config = normalize_generation_config(job.config)
    count = config.param_set_count
    mode = config.mode
    focus = config.focus_families
    rules = config.diversity_rules

    logger.info(f"Run {job.job_id}: {count} candidates, mode={mode}", component="GENERATE",
                details=f"provider={gateway.provider_info.get('provider', 'mock')}")

    params, validation = generate_param_sets(
        job, gateway.proposer, count, rules, mode, focus, context
    )

    candidates = build_candidates(job, params, context)
    candidates = with_diversity_bonus(candidates)
    candidates = with_exploitation_boost(candidates, focus, mode)

    judge = gateway.judge if config.use_llm_aesthetic else None
    shortlist, stats = select_shortlist(candidates, judge)

    board = build_family_board(candidates, board_variants(job.config.variants_per_family))

    result = EvolutionResult(
        total_candidates=len(candidates),
        top_candidates=tuple(shortlist),
        all_candidates=tuple(candidates),
        family_board=tuple(board),
        provider=dict(gateway.provider_info),
        count=count,
        mode=mode,
        diversity_rules=rules,
        validation=validation,
        enums=wire_enums(),
    )
    logger.info(f"Run {job.job_id} complete", component="SELECT",
                details=f"{len(shortlist)} shortlisted, {len(board)} families")
    return RunOutput(result=result, selection=stats, job=job)


def run_evolution(
    job: EvolutionJob,
    gateway: Optional[Gateway] = None,
    context: Optional[GenerationContext] = None,
) -> EvolutionResult:
    return run_evolution_detailed(job, gateway, context).result
