"""App path helpers (cross-platform).

SSOT for themeforge config and output paths.

Environment overrides (useful for containers/CI):
- THEMEFORGE_CONFIG_DIR: dir holding llm-config.json
- THEMEFORGE_OUTPUT_DIR: base dir for exported results
"""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "themeforge"
PROVIDER_CONFIG_FILENAME = "llm-config.json"


def _env_path(name: str) -> Path | None:
    v = os.environ.get(name)
    if not v:
        return None
    return Path(os.path.expanduser(v)).resolve()


def get_config_dir() -> Path:
    """Directory searched for provider configuration."""
    cfg_dir = _env_path("THEMEFORGE_CONFIG_DIR")
    if cfg_dir is not None:
        return cfg_dir
    return Path(user_config_dir(APP_NAME, appauthor=False)).resolve()


def get_provider_config_path() -> Path:
    return get_config_dir() / PROVIDER_CONFIG_FILENAME


def get_output_dir() -> Path:
    """Base dir for exported results; created on demand."""
    out_dir = _env_path("THEMEFORGE_OUTPUT_DIR")
    if out_dir is None:
        out_dir = Path(user_data_dir(APP_NAME, appauthor=False)).resolve() / "results"
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir
