"""
Test doubles for the proposer and judge capabilities.

ScriptedProposer replays canned responses so repair-loop scenarios are
exact. FixedJudge returns per-candidate scores and can fail on chosen ids.
"""
from typing import Any, List, Optional, Sequence

from themeforge.models import ParameterSet
from themeforge.proposer import (
    AestheticJudge,
    JudgeVerdict,
    ParamProposer,
    ProposalResult,
)


class ScriptedProposer(ParamProposer):
    """
    Each response is a candidate list, a ProposalResult, or an Exception
    instance (raised). Calls past the script repeat the last entry.
    """

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[tuple] = []

    def _next(self, kind: str, **details):
        self.calls.append((kind, details))
        response = self.responses[min(len(self.calls) - 1, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, ProposalResult):
            return response
        return ProposalResult.success(response, "direct")

    def propose(self, schema, context):
        return self._next("propose", count=schema.count, mode=context.mode,
                          focus=list(context.focus_families))

    def repair(self, schema, context, previous, violations):
        return self._next("repair", previous=list(previous), violations=list(violations))

    @property
    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]


class FixedJudge(AestheticJudge):
    """Judge returning a fixed (or per-id) score; ids in `fail` raise."""

    def __init__(self, score: Optional[float] = 0.5, fail: Sequence[str] = (),
                 scores: Optional[dict] = None):
        self.score = score
        self.fail = set(fail)
        self.scores = scores or {}
        self.calls: List[str] = []

    @property
    def provider_name(self) -> str:
        return "fixed"

    def judge_aesthetic(self, candidate_id, dna):
        self.calls.append(candidate_id)
        if candidate_id in self.fail:
            raise RuntimeError(f"judge unavailable for {candidate_id}")
        return JudgeVerdict(
            score=self.scores.get(candidate_id, self.score),
            reason="scripted",
            risk_flags=("contrast",),
        )


def wire(params: ParameterSet) -> dict:
    """Proposer-shaped element for a parameter set."""
    return {"params": params.to_wire_dict()}


class RawJudge(AestheticJudge):
    """Returns the given objects as verdicts, one per call, in order."""

    def __init__(self, *verdicts: Any):
        self.verdicts = list(verdicts)
        self.calls: List[str] = []

    @property
    def provider_name(self) -> str:
        return "raw"

    def judge_aesthetic(self, candidate_id, dna):
        self.calls.append(candidate_id)
        return self.verdicts[len(self.calls) - 1]
