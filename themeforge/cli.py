"""
themeforge/cli.py
Command-line interface for themeforge

Usage:
    python -m themeforge generate --count 20 --seed 42
    python -m themeforge generate --families 4 --variants 4 --mode exploitation --focus premium/swiss
    python -m themeforge stream --events prefs.json
    python -m themeforge enums
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import MODES, RESULT_SCHEMA_VERSION, wire_enums


def _gateway(args: argparse.Namespace, provider: Optional[str] = None):
    """Provider config -> gateway. Remote providers need a transport, which the CLI has none of."""
    from .provider_config import load_provider_config
    from .proposer import build_gateway

    path = Path(args.config) if args.config else None
    config = load_provider_config(path, provider=args.provider or provider)
    return build_gateway(config)


def _set_verbosity(args: argparse.Namespace) -> None:
    from .logger import LogLevel, logger, set_log_level
    if args.verbose:
        set_log_level(LogLevel.DEBUG)
    if args.log_file:
        logger.enable_file_logging(args.log_file)


def cmd_generate(args: argparse.Namespace) -> int:
    """Run one evolution and export it."""
    from .app_paths import get_output_dir
    from .export import export_result
    from .models import DiversityRules, GenerationConfig, StreamRequest
    from .pipeline import new_job, run_evolution_detailed
    from .provider_config import ConfigError
    from .seeds import GenerationContext

    _set_verbosity(args)

    config = GenerationConfig(
        param_set_count=args.count,
        family_count=args.families,
        variants_per_family=args.variants,
        mode=args.mode,
        focus_families=tuple(args.focus or ()),
        diversity_rules=DiversityRules(),
        llm_provider=args.provider,
        use_llm_aesthetic=args.judge,
    )

    try:
        gateway = _gateway(args, config.llm_provider)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    ctx = GenerationContext(run_seed=args.seed)
    job = new_job(StreamRequest(
        target_ui_id=args.target_ui,
        base_theme_id=args.base_theme,
        generation_config=config,
    ))

    print(f"themeforge {__version__} (result schema {RESULT_SCHEMA_VERSION})")
    print(f"Job: {job.job_id}")
    print(f"Run seed: {ctx.run_seed}")
    print()

    run = run_evolution_detailed(job, gateway, ctx)
    result = run.result

    print(f"Candidates: {result.total_candidates} (mode={result.mode})")
    print(f"Validation: repaired={result.validation.repaired} attempts={result.validation.attempts}")
    if args.verbose:
        for error in result.validation.errors:
            print(f"  - {error}")
    print()

    print("Shortlist:")
    for c in result.top_candidates:
        print(f"  #{c.rank} {c.candidate_id}  {c.visual_family_id:<24} score={c.scores.score:.3f}")
    print()

    print("Family board:")
    for group in result.family_board:
        top = group.candidates[0].scores.score
        print(f"  {group.label:<28} {len(group.candidates)} variants  top={top:.3f}")
    print()

    output_dir = Path(args.output) if args.output else get_output_dir()
    result_dir = export_result(result, output_dir, job.job_id,
                               selection=run.selection, run_seed=ctx.run_seed)
    print(f"Exported: {result_dir}")
    return 0


def cmd_stream(args: argparse.Namespace) -> int:
    """Run a preference-stream evolution, printing one JSON line per event."""
    from .models import StreamRequest
    from .provider_config import ConfigError
    from .seeds import GenerationContext
    from .stream import run_evolution_stream

    _set_verbosity(args)

    events_path = Path(args.events)
    if not events_path.exists():
        print(f"ERROR: Events file not found: {events_path}")
        return 1
    try:
        with open(events_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid events file {events_path}: {e}")
        return 1

    # Either a bare event list or a full request object
    if isinstance(data, list):
        data = {"preference_stream": data}
    request = StreamRequest.from_dict(data)

    try:
        gateway = _gateway(args, request.generation_config.llm_provider)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    def emit(name, payload):
        print(json.dumps({"event": name, "data": payload}))
        sys.stdout.flush()

    try:
        run_evolution_stream(request, emit, gateway, GenerationContext(run_seed=args.seed))
    except Exception:
        # generation.failed already emitted
        return 1
    return 0


def cmd_enums(args: argparse.Namespace) -> int:
    """List the enumeration registry."""
    enums = wire_enums()
    if args.json:
        print(json.dumps(enums, indent=2))
        return 0
    for axis, values in enums.items():
        print(f"[{axis}]")
        for value in values:
            print(f"  {value}")
        print()
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="themeforge",
        description="Theme design-DNA evolution",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__} (result schema {RESULT_SCHEMA_VERSION})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_provider_args(p):
        p.add_argument("--config", "-c", type=str, help="Provider config JSON (llm-config.json)")
        p.add_argument("--provider", "-p", type=str, help="Provider override (mock/gemini/nova)")
        p.add_argument("--seed", "-s", type=int, default=None, help="Run seed (default: random)")
        p.add_argument("--verbose", "-v", action="store_true", help="Show debug info")
        p.add_argument("--log-file", type=str, help="Also write a debug log to this file")

    # generate command
    gen_parser = subparsers.add_parser("generate", help="Run one evolution and export it")
    gen_parser.add_argument("--count", "-n", type=int, help="Parameter set count")
    gen_parser.add_argument("--families", type=int, help="Family count (with --variants)")
    gen_parser.add_argument("--variants", type=int, help="Variants per family")
    gen_parser.add_argument("--mode", "-m", choices=MODES)
    gen_parser.add_argument("--focus", "-f", action="append", help="Focus family mood/era (repeatable)")
    gen_parser.add_argument("--judge", action="store_true", help="Re-score shortlist with the judge")
    gen_parser.add_argument("--target-ui", default="default-ui", help="Target UI id")
    gen_parser.add_argument("--base-theme", default="default", help="Base theme id")
    gen_parser.add_argument("--output", "-o", type=str, help="Output directory")
    add_provider_args(gen_parser)
    gen_parser.set_defaults(func=cmd_generate)

    # stream command
    stream_parser = subparsers.add_parser("stream", help="Run from a preference stream")
    stream_parser.add_argument("--events", "-e", type=str, required=True,
                               help="JSON file: event list or request object")
    add_provider_args(stream_parser)
    stream_parser.set_defaults(func=cmd_stream)

    # enums command
    enums_parser = subparsers.add_parser("enums", help="List the enumeration registry")
    enums_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    enums_parser.set_defaults(func=cmd_enums)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
