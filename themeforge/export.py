"""
themeforge/export.py
Write an evolution result to disk

Layout:
- result.json                      (full EvolutionResult)
- tokens/{candidate_id}.json       (token patch per shortlisted candidate)
- reports/selection_report.json    (ranks, scores, shortlist spread, validation)
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import RESULT_SCHEMA_VERSION
from .logger import logger
from .models import EvolutionResult, SelectionStats
from .naming import sanitize_to_slug, validate_job_id


def _write_json(path: Path, data) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_result(
    result: EvolutionResult,
    output_dir: Path,
    job_id: str,
    selection: Optional[SelectionStats] = None,
    run_seed: Optional[int] = None,
) -> Path:
    """
    Export a result under output_dir/{job slug}/.

    Args:
        result: Completed run
        output_dir: Base output directory
        job_id: Job id (slugged for the directory name)
        selection: Shortlist stats for the report (optional)
        run_seed: Seed used, recorded for reproduction (optional)

    Returns:
        Path to the result directory
    """
    validate_job_id(job_id)
    result_dir = Path(output_dir) / sanitize_to_slug(job_id)
    tokens_dir = result_dir / "tokens"
    reports_dir = result_dir / "reports"

    result_dir.mkdir(parents=True, exist_ok=True)
    tokens_dir.mkdir(exist_ok=True)
    reports_dir.mkdir(exist_ok=True)

    _write_json(result_dir / "result.json", dict(result.to_dict(), job_id=job_id))

    for candidate in result.top_candidates:
        _write_json(tokens_dir / f"{candidate.candidate_id}.json", {
            "candidate_id": candidate.candidate_id,
            "visual_family_id": candidate.visual_family_id,
            "rank": candidate.rank,
            "token_patch": dict(candidate.token_patch),
        })

    report = {
        "version": RESULT_SCHEMA_VERSION,
        "created": datetime.now().isoformat(),
        "job_id": job_id,
        "run_seed": run_seed,
        "mode": result.mode,
        "count": result.count,
        "selected": [
            {
                "candidate_id": c.candidate_id,
                "rank": c.rank,
                "visual_family_id": c.visual_family_id,
                "score": c.scores.score,
                "aesthetics": c.scores.aesthetics,
                "judge_reason": c.judge.reason if c.judge else None,
            }
            for c in result.top_candidates
        ],
        "selection": selection.to_dict() if selection else None,
        "validation": result.validation.to_dict(),
    }
    _write_json(reports_dir / "selection_report.json", report)

    logger.info(f"Exported {job_id}", component="EXPORT", details=str(result_dir))
    return result_dir
