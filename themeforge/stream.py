"""
themeforge/stream.py
Streaming run: progress events through an emit(name, payload) callback

Event order:
  stream.started
  preference.processed   (one per event)
  preferences.expanded
  generation.started
  family.generated       (one per board group)
  candidate.selected     (one per shortlisted candidate)
  generation.completed | generation.failed   (exactly one)

Progress events are best-effort; the returned result is authoritative.
"""

from typing import Any, Callable, Dict, Optional

from .logger import logger
from .models import EvolutionResult, StreamRequest
from .naming import make_stream_id
from .pipeline import new_job, run_evolution
from .preferences import derive_config_from_preferences
from .proposer import Gateway
from .seeds import GenerationContext

Emit = Callable[[str, Dict[str, Any]], None]

TERMINAL_EVENTS = ("generation.completed", "generation.failed")


def run_evolution_stream(
    request: StreamRequest,
    emit: Emit,
    gateway: Optional[Gateway] = None,
    context: Optional[GenerationContext] = None,
) -> EvolutionResult:
    """
    Derive a config from preferences, run the pipeline, stream progress.

    On any failure, generation.failed is emitted and the exception is
    re-raised; no success event is sent for that run.
    """
    stream_id = make_stream_id()
    events = request.preference_stream

    try:
        emit("stream.started", {
            "stream_id": stream_id,
            "received_preference_events": len(events),
            "target_ui_id": request.target_ui_id,
        })

        for index, event in enumerate(events):
            emit("preference.processed", {
                "index": index,
                "type": event.type or "like",
                "value": event.value,
                "family_id": event.family_id,
            })

        config = derive_config_from_preferences(request.generation_config, events)
        emit("preferences.expanded", {
            "mode": config.mode,
            "focus_families": list(config.focus_families),
            "param_set_count": config.param_set_count,
            "diversity_rules": config.diversity_rules.to_dict(),
        })

        job = new_job(
            StreamRequest(
                target_ui_id=request.target_ui_id,
                base_theme_id=request.base_theme_id,
                generation_config=config,
            ),
            stream=True,
        )
        emit("generation.started", {
            "job_id": job.job_id,
            "mode": config.mode,
            "requested_candidates": config.param_set_count,
        })

        result = run_evolution(job, gateway, context)

        for group in result.family_board:
            emit("family.generated", {
                "family_id": group.family_id,
                "label": group.label,
                "count": len(group.candidates),
            })

        for candidate in result.top_candidates:
            emit("candidate.selected", {
                "candidate_id": candidate.candidate_id,
                "family_id": candidate.visual_family_id,
                "rank": candidate.rank,
                "score": candidate.scores.score,
            })
    except Exception as e:
        logger.error(f"Stream {stream_id} failed", component="STREAM", details=str(e))
        emit("generation.failed", {"stream_id": stream_id, "message": str(e)})
        raise

    emit("generation.completed", dict(result.summary(), job_id=job.job_id))
    logger.info(f"Stream {stream_id} completed", component="STREAM")
    return result
