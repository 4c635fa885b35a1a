"""
themeforge/generate.py
Parameter set generation with validate/repair/backfill

Flow (remote proposer):
1. propose -> validate
2. up to two repair rounds, each fed the surviving valid candidates
   and the violation list
3. backfill from the local generator until `count` unique sets exist

Mock mode skips the proposer and runs the local generator through the
same validation and backfill path.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from .config import (
    DENSITY_PROFILES,
    ERAS,
    MOODS,
    PARAM_ENUMS,
    PARAM_FIELDS,
    REPAIR_CONFIG,
    RepairConfig,
    wire_enums,
)
from .logger import logger
from .models import DiversityRules, EvolutionJob, ParameterSet, ValidationReport
from .naming import split_family_id
from .proposer import ParamProposer, ProposalContext, ProposalResult, ProposalSchema
from .seeds import GenerationContext
from .validate import validate_param_sets


def _focus_pool(focus_families: Sequence[str]) -> List[Tuple[str, str]]:
    """Registry-valid (mood, era) pairs from focus family ids."""
    pool = []
    for family in focus_families:
        mood, era = split_family_id(family)
        if mood in MOODS and era in ERAS:
            pool.append((mood, era))
    return pool


@dataclass
class LocalParamGenerator:
    """
    Deterministic-shape local generator (the "no external proposer" path).

    - mood and era round-robin over shuffled pools
    - density round-robin for the first 3 * max(1, density_min_each) picks
    - exploitation mode picks a focus family with p=focus_bias
    - remaining axes sampled uniformly; duplicate signatures rejected
    """
    context: GenerationContext
    repair_config: RepairConfig = field(default_factory=lambda: REPAIR_CONFIG)

    def generate(
        self,
        count: int,
        rules: DiversityRules,
        mode: str,
        focus_families: Sequence[str] = (),
    ) -> List[ParameterSet]:
        ctx = self.context
        density_pool = ctx.shuffled(DENSITY_PROFILES)
        era_pool = ctx.shuffled(ERAS)
        mood_pool = ctx.shuffled(MOODS)
        family_pool = _focus_pool(focus_families)

        density_rounds = len(density_pool) * max(1, rules.density_min_each or 0)
        max_attempts = count * self.repair_config.attempts_per_candidate

        candidates: List[ParameterSet] = []
        signatures: Set[str] = set()
        attempts = 0

        while len(candidates) < count and attempts < max_attempts:
            index = len(candidates)
            use_focus = (
                mode == "exploitation"
                and family_pool
                and ctx.random() < self.repair_config.focus_bias
            )
            if use_focus:
                mood, era = ctx.choice(family_pool)
            else:
                mood = mood_pool[index % len(mood_pool)]
                era = era_pool[index % len(era_pool)]

            if index < density_rounds:
                density = density_pool[index % len(density_pool)]
            else:
                density = ctx.choice(DENSITY_PROFILES)

            proposal = ParameterSet(
                mood=mood,
                era=era,
                density_profile=density,
                elevation_profile=ctx.choice(PARAM_ENUMS["elevation_profile"]),
                radius_profile=ctx.choice(PARAM_ENUMS["radius_profile"]),
                color_strategy=ctx.choice(PARAM_ENUMS["color_strategy"]),
            )

            if proposal.signature not in signatures:
                signatures.add(proposal.signature)
                candidates.append(proposal)
            attempts += 1

        return candidates[:count]


def backfill(
    valid: Sequence[ParameterSet],
    count: int,
    rules: DiversityRules,
    mode: str,
    focus_families: Sequence[str],
    context: GenerationContext,
    repair_config: RepairConfig = REPAIR_CONFIG,
) -> List[ParameterSet]:
    """
    Top up `valid` with local candidates until `count` unique sets exist.

    Never calls a proposer. When random generation cannot fill the gap,
    the shuffled registry product is walked, so this completes whenever
    count does not exceed the registry size.
    """
    merged = list(valid)[:count]
    signatures = {p.signature for p in merged}

    pool = LocalParamGenerator(context, repair_config).generate(
        count * repair_config.backfill_pool_factor, rules, mode, focus_families
    )
    for candidate in pool:
        if len(merged) >= count:
            break
        if candidate.signature in signatures:
            continue
        signatures.add(candidate.signature)
        merged.append(candidate)

    if len(merged) < count:
        logger.debug(f"Backfill pool short by {count - len(merged)}, sweeping registry",
                     component="GENERATE")
        product = list(itertools.product(*(PARAM_ENUMS[name] for name in PARAM_FIELDS)))
        for values in context.shuffled(product):
            if len(merged) >= count:
                break
            candidate = ParameterSet(*values)
            if candidate.signature in signatures:
                continue
            signatures.add(candidate.signature)
            merged.append(candidate)

    return merged


def _call(attempt: int, request: Callable[[], ProposalResult]) -> Optional[Any]:
    """
    Run one proposer call. Returns the candidate payload, or None when the
    call raised or the response could not be parsed.
    """
    try:
        result = request()
    except Exception as e:
        logger.warning(f"Proposer attempt {attempt} failed", component="REPAIR", details=str(e))
        return None
    if not result.ok:
        logger.warning(f"Proposer attempt {attempt} unparseable", component="REPAIR",
                       details=result.error)
        return None
    if result.strategy == "extracted":
        logger.debug(f"Attempt {attempt} parsed via JSON extraction", component="REPAIR")
    return result.candidates


def generate_param_sets(
    job: EvolutionJob,
    proposer: Optional[ParamProposer],
    count: int,
    rules: DiversityRules,
    mode: str,
    focus_families: Sequence[str] = (),
    context: Optional[GenerationContext] = None,
    repair_config: RepairConfig = REPAIR_CONFIG,
) -> Tuple[List[ParameterSet], ValidationReport]:
    """
    Produce exactly `count` unique, registry-valid parameter sets.

    Args:
        job: Job descriptor (ids go into proposer prompts)
        proposer: External proposer, or None for the local generator
        count: Required number of parameter sets
        rules: Normalized diversity rules
        mode: "exploration" or "exploitation"
        focus_families: Normalized "mood/era" ids
        context: Random source for local generation

    Returns:
        (params, ValidationReport)
    """
    context = context or GenerationContext()
    focus_families = tuple(focus_families)

    def fill(valid: Sequence[ParameterSet]) -> List[ParameterSet]:
        return backfill(valid, count, rules, mode, focus_families, context, repair_config)

    if proposer is None:
        local = LocalParamGenerator(context, repair_config).generate(
            count, rules, mode, focus_families
        )
        outcome = validate_param_sets(local, count, rules)
        if outcome.ok:
            return outcome.valid_candidates, ValidationReport(repaired=False, attempts=1)
        logger.info("Local generation needed backfill", component="GENERATE",
                    details=f"{len(outcome.errors)} violations")
        return fill(outcome.valid_candidates), ValidationReport(
            repaired=True, attempts=1, errors=tuple(outcome.errors)
        )

    schema = ProposalSchema(count=count, enums=wire_enums(), diversity_rules=rules)
    proposal_context = ProposalContext(
        target_ui_id=job.target_ui_id,
        base_theme_id=job.base_theme_id,
        mode=mode,
        focus_families=focus_families,
    )

    current: Any = []
    last_errors: List[str] = []
    max_attempts = repair_config.max_attempts

    for attempt in range(1, max_attempts + 1):
        if attempt == 1:
            payload = _call(attempt, lambda: proposer.propose(schema, proposal_context))
            current = payload if isinstance(payload, list) else []
        else:
            previous = [p.to_wire_dict() for p in current]
            payload = _call(attempt, lambda: proposer.repair(
                schema, proposal_context, previous, last_errors
            ))
            if isinstance(payload, list):
                current = payload

        outcome = validate_param_sets(current, count, rules)
        if outcome.ok:
            logger.info(f"Proposal accepted on attempt {attempt}", component="REPAIR")
            return outcome.valid_candidates, ValidationReport(
                repaired=attempt > 1, attempts=attempt
            )

        logger.debug(f"Attempt {attempt}: {len(outcome.errors)} violations",
                     component="REPAIR", details="; ".join(outcome.errors[:3]))
        last_errors = outcome.errors
        current = outcome.valid_candidates

    logger.info(f"Repair budget spent, backfilling {count - len(current)} sets",
                component="REPAIR")
    return fill(current), ValidationReport(
        repaired=True, attempts=max_attempts, errors=tuple(last_errors)
    )
