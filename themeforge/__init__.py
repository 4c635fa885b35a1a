"""
themeforge - Theme design-DNA evolution

Generates a ranked, diverse shortlist of design-DNA candidates for a UI
theme. An external model may propose parameter sets; everything it
returns is validated, repaired or backfilled locally, then scored and
selected for diversity.

Usage:
    python -m themeforge generate --count 20 --seed 42
    python -m themeforge stream --events prefs.json
    python -m themeforge enums
"""

__version__ = "0.1.0"

from .models import (
    ParameterSet,
    DesignDNA,
    CandidateScores,
    Candidate,
    DiversityRules,
    GenerationConfig,
    EvolutionJob,
    EvolutionResult,
    PreferenceEvent,
    StreamRequest,
)
from .seeds import GenerationContext, stable_u32
from .dna import build_design_dna, token_patch
from .validate import validate_param_sets, normalize_diversity_rules, normalize_generation_config
from .generate import generate_param_sets, LocalParamGenerator
from .score import score_dna, dna_distance, with_diversity_bonus, with_exploitation_boost
from .select import diverse_top_k, rescore_with_judge
from .board import build_family_board
from .preferences import derive_config_from_preferences
from .proposer import (
    ParamProposer,
    AestheticJudge,
    FallbackJudge,
    LLMGateway,
    Gateway,
    build_gateway,
)
from .provider_config import ProviderConfig, ConfigError, load_provider_config
from .pipeline import run_evolution, new_job
from .stream import run_evolution_stream
from .export import export_result

__all__ = [
    # Version
    "__version__",
    # Models
    "ParameterSet",
    "DesignDNA",
    "CandidateScores",
    "Candidate",
    "DiversityRules",
    "GenerationConfig",
    "EvolutionJob",
    "EvolutionResult",
    "PreferenceEvent",
    "StreamRequest",
    # Seeds
    "GenerationContext",
    "stable_u32",
    # Generation
    "build_design_dna",
    "token_patch",
    "validate_param_sets",
    "normalize_diversity_rules",
    "normalize_generation_config",
    "generate_param_sets",
    "LocalParamGenerator",
    # Scoring + selection
    "score_dna",
    "dna_distance",
    "with_diversity_bonus",
    "with_exploitation_boost",
    "diverse_top_k",
    "rescore_with_judge",
    "build_family_board",
    # Preferences
    "derive_config_from_preferences",
    # Providers
    "ParamProposer",
    "AestheticJudge",
    "FallbackJudge",
    "LLMGateway",
    "Gateway",
    "build_gateway",
    "ProviderConfig",
    "ConfigError",
    "load_provider_config",
    # Runs
    "run_evolution",
    "new_job",
    "run_evolution_stream",
    "export_result",
]
