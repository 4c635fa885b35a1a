"""
themeforge/proposer.py
External proposer + judge capabilities

The pipeline treats every proposer response as untrusted: results come
back as tagged ProposalResult values and are always re-validated.

LLMGateway adapts a plain text-completion callable (the transport) into
both capabilities. Transports live outside this package; tests and
callers inject them.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .config import FALLBACK_AESTHETIC_SCORE
from .logger import logger
from .models import DesignDNA, DiversityRules
from .provider_config import ConfigError, ProviderConfig

CompletionFn = Callable[[str], str]


class ProposerError(RuntimeError):
    """A proposer or judge call failed."""
    pass


# =============================================================================
# Request / response values
# =============================================================================

@dataclass(frozen=True)
class ProposalSchema:
    """What a proposal must look like."""
    count: int
    enums: Mapping[str, Sequence[str]]
    diversity_rules: DiversityRules

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "enums": {k: list(v) for k, v in self.enums.items()},
            "diversity_rules": self.diversity_rules.to_dict(),
        }


@dataclass(frozen=True)
class ProposalContext:
    """Who the proposal is for and how to bias it."""
    target_ui_id: str
    base_theme_id: str
    mode: str
    focus_families: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "target_ui_id": self.target_ui_id,
            "base_theme_id": self.base_theme_id,
            "mode": self.mode,
            "focus_families": list(self.focus_families),
        }


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of decoding model text.

    strategy is "direct" for a clean JSON document, "extracted" when the
    JSON had to be pulled out of surrounding prose or code fences.
    """
    ok: bool
    payload: Any = None
    strategy: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ProposalResult:
    """Tagged proposer output: success with candidates, or failure."""
    ok: bool
    candidates: Any = ()
    error: Optional[str] = None
    strategy: Optional[str] = None

    @classmethod
    def success(cls, candidates: Any, strategy: Optional[str] = None) -> "ProposalResult":
        return cls(ok=True, candidates=candidates, strategy=strategy)

    @classmethod
    def failure(cls, error: str) -> "ProposalResult":
        return cls(ok=False, candidates=(), error=error)


@dataclass(frozen=True)
class JudgeVerdict:
    score: Optional[float]
    reason: Optional[str] = None
    risk_flags: Tuple[str, ...] = ()


# =============================================================================
# JSON parsing
# =============================================================================

_FENCE_RX = re.compile(r"^```[a-zA-Z0-9_-]*\s*$")
_JSON_BLOCK_RX = re.compile(
    r"(?s)(```json\s*(?P<fjson>.+?)\s*```)|(?P<obj>\{.*\})|(?P<arr>\[.*\])"
)


def strip_code_fences(text: str) -> str:
    """If text is a single fenced block, strip the ```lang ... ``` wrapper."""
    if not text:
        return ""
    lines = text.strip().splitlines()
    if len(lines) >= 2 and _FENCE_RX.match(lines[0]) and lines[-1].strip() == "```":
        return "\n".join(lines[1:-1]).strip()
    return text


def extract_json_block(text: str) -> Optional[str]:
    """Pull a JSON-looking block out of text (fenced ```json wins)."""
    if not text:
        return None
    m = _JSON_BLOCK_RX.search(text.strip())
    if not m:
        return None
    for group in ("fjson", "obj", "arr"):
        if m.group(group):
            return m.group(group).strip()
    return None


def parse_json_payload(text: Optional[str]) -> ParseResult:
    """
    Decode model output.

    1. Parse the whole text as JSON.
    2. Otherwise extract a fenced/object/array block and parse that.
    """
    if not text or not text.strip():
        return ParseResult(ok=False, error="empty response")

    try:
        return ParseResult(ok=True, payload=json.loads(text), strategy="direct")
    except json.JSONDecodeError:
        pass

    block = extract_json_block(strip_code_fences(text))
    if block is None:
        return ParseResult(ok=False, error="no JSON object found in response")
    try:
        return ParseResult(ok=True, payload=json.loads(block), strategy="extracted")
    except json.JSONDecodeError as e:
        return ParseResult(ok=False, error=f"extracted block is not valid JSON: {e.msg}")


def candidates_from_payload(parsed: ParseResult) -> ProposalResult:
    """Accept {"candidates": [...]} or a bare list."""
    if not parsed.ok:
        return ProposalResult.failure(parsed.error or "unparseable response")
    payload = parsed.payload
    if isinstance(payload, Mapping) and "candidates" in payload:
        return ProposalResult.success(payload["candidates"], parsed.strategy)
    if isinstance(payload, list):
        return ProposalResult.success(payload, parsed.strategy)
    return ProposalResult.failure("response has no candidates array")


# =============================================================================
# Capabilities
# =============================================================================

class ParamProposer(ABC):
    """Proposes parameter sets. Output is untrusted."""

    @property
    def provider_name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def propose(self, schema: ProposalSchema, context: ProposalContext) -> ProposalResult:
        """Ask for schema.count fresh candidates."""
        pass

    @abstractmethod
    def repair(
        self,
        schema: ProposalSchema,
        context: ProposalContext,
        previous: Sequence[Any],
        violations: Sequence[str],
    ) -> ProposalResult:
        """Ask to fix only `violations`, keeping valid entries of `previous`."""
        pass


class AestheticJudge(ABC):
    """Scores a single candidate's aesthetics. May raise per call."""

    @property
    def provider_name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def judge_aesthetic(self, candidate_id: str, dna: DesignDNA) -> JudgeVerdict:
        pass


class FallbackJudge(AestheticJudge):
    """Non-AI judge: constant score, used when no provider is configured."""

    @property
    def provider_name(self) -> str:
        return "mock"

    def judge_aesthetic(self, candidate_id: str, dna: DesignDNA) -> JudgeVerdict:
        return JudgeVerdict(score=FALLBACK_AESTHETIC_SCORE, reason="fallback")


# =============================================================================
# LLM gateway
# =============================================================================

def format_enum_rules(enums: Mapping[str, Sequence[str]]) -> str:
    return "; ".join(f"{key}: [{', '.join(values)}]" for key, values in enums.items())


def _focus_line(context: ProposalContext, default: str) -> str:
    if context.mode == "exploitation" and context.focus_families:
        return f"Prefer these visual families: {', '.join(context.focus_families)}"
    return default


class LLMGateway(ParamProposer, AestheticJudge):
    """
    Proposer + judge over a text-completion transport.

    Args:
        config: Validated provider settings (must not be mock)
        complete: prompt -> raw model text; may raise
    """

    def __init__(self, config: ProviderConfig, complete: CompletionFn):
        if config.is_mock:
            raise ConfigError("LLMGateway needs a remote provider, got 'mock'")
        config.validate()
        self.config = config
        self._complete = complete

    @property
    def provider_name(self) -> str:
        return self.config.provider

    def _complete_json(self, instruction: str, payload: Dict[str, Any]) -> ParseResult:
        prompt = "\n".join([
            "Return JSON only. No markdown, no prose.",
            instruction,
            f"Input: {json.dumps(payload)}",
        ])
        try:
            text = self._complete(prompt)
        except ProposerError:
            raise
        except Exception as e:
            raise ProposerError(f"{self.config.provider} request failed: {e}") from e

        parsed = parse_json_payload(text)
        if parsed.ok and parsed.strategy == "extracted":
            logger.debug("Model response needed JSON extraction", component="PROPOSER")
        return parsed

    def propose(self, schema: ProposalSchema, context: ProposalContext) -> ProposalResult:
        instruction = " ".join([
            "You are generating UI parameter sets.",
            'Return JSON only with schema: {"count":number,"candidates":[{"params":'
            '{"vibe":"...","era":"...","densityProfile":"...","elevationProfile":"...",'
            '"radiusProfile":"...","colorStrategy":"..."}}]}',
            f"Output exactly {schema.count} candidates.",
            "No prose. No markdown. No extra keys.",
            f"Generation mode: {context.mode}.",
            _focus_line(context, "Prioritize broad visual family spread."),
            "All values must be chosen from enum lists only.",
            "Do not return duplicate params sets.",
            f"Diversity rules: {json.dumps(schema.diversity_rules.to_dict())}",
            f"Enums: {format_enum_rules(schema.enums)}",
        ])
        payload = dict(context.to_dict(), count=schema.count,
                       diversity_rules=schema.diversity_rules.to_dict())
        return candidates_from_payload(self._complete_json(instruction, payload))

    def repair(
        self,
        schema: ProposalSchema,
        context: ProposalContext,
        previous: Sequence[Any],
        violations: Sequence[str],
    ) -> ProposalResult:
        instruction = " ".join([
            "Repair the previous JSON output.",
            'Keep response JSON-only with schema: {"count":number,"candidates":[{"params":{...}}]}',
            f"Output exactly {schema.count} candidates after fixing violations.",
            f"Generation mode: {context.mode}.",
            _focus_line(context, "Keep visual families broadly diverse."),
            "Fix only violations. Preserve as many valid candidates as possible.",
            "All values must be enum values only and no duplicate params sets.",
            f"Violations: {json.dumps(list(violations))}",
            f"Diversity rules: {json.dumps(schema.diversity_rules.to_dict())}",
            f"Enums: {format_enum_rules(schema.enums)}",
        ])
        payload = dict(context.to_dict(), count=schema.count,
                       previous_candidates=list(previous))
        return candidates_from_payload(self._complete_json(instruction, payload))

    def judge_aesthetic(self, candidate_id: str, dna: DesignDNA) -> JudgeVerdict:
        parsed = self._complete_json(
            'Score aesthetics from 0..1. JSON schema: '
            '{"score":number,"reason":"string","riskFlags":["string"]}',
            {"candidate_id": candidate_id, "design_dna": dna.to_dict()},
        )
        if not parsed.ok or not isinstance(parsed.payload, Mapping):
            raise ProposerError(parsed.error or "judge response is not an object")
        return verdict_from_payload(parsed.payload)


def verdict_from_payload(payload: Mapping[str, Any]) -> JudgeVerdict:
    """Tolerant JudgeVerdict decoding; a bad score becomes None."""
    score = payload.get("score")
    try:
        score = float(score) if score is not None else None
    except (TypeError, ValueError):
        score = None

    reason = payload.get("reason")
    flags = payload.get("risk_flags", payload.get("riskFlags")) or []
    if not isinstance(flags, (list, tuple)):
        flags = [flags]
    return JudgeVerdict(
        score=score,
        reason=str(reason) if reason else None,
        risk_flags=tuple(str(f) for f in flags),
    )


# =============================================================================
# Wiring
# =============================================================================

@dataclass(frozen=True)
class Gateway:
    """
    What a pipeline run talks to.

    proposer is None in mock mode: generation goes straight to the local
    generator, through the same validation path.
    """
    proposer: Optional[ParamProposer]
    judge: AestheticJudge
    provider_info: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_mock(self) -> bool:
        return self.proposer is None


def build_gateway(config: ProviderConfig, complete: Optional[CompletionFn] = None) -> Gateway:
    """
    Wire capabilities for a provider config.

    Raises:
        ConfigError: remote provider selected without a transport
    """
    info = config.describe()
    if config.is_mock:
        return Gateway(proposer=None, judge=FallbackJudge(), provider_info=info)
    if complete is None:
        raise ConfigError(f"No transport configured for provider={config.provider}")
    gateway = LLMGateway(config, complete)
    return Gateway(proposer=gateway, judge=gateway, provider_info=info)


def mock_gateway() -> Gateway:
    return build_gateway(ProviderConfig())
