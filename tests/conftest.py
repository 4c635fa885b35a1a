"""Pytest configuration - shared fixtures."""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from themeforge.logger import LogLevel, set_log_level
from themeforge.models import EvolutionJob, GenerationConfig, ParameterSet
from themeforge.seeds import GenerationContext

ROOT = Path(__file__).resolve().parents[1]


def pytest_sessionstart(session):
    # Keep pipeline warnings out of test output
    set_log_level(LogLevel.ERROR)


# Fixtures used by multiple test files

@pytest.fixture
def project_root():
    """Return path to project root."""
    return ROOT


@pytest.fixture
def ctx():
    """Seeded random source."""
    return GenerationContext(run_seed=42)


@pytest.fixture
def sample_params():
    return ParameterSet(
        mood="premium",
        era="swiss",
        density_profile="comfortable",
        elevation_profile="soft",
        radius_profile="rounded",
        color_strategy="monoAccent",
    )


@pytest.fixture
def make_job() -> Callable[..., EvolutionJob]:
    """Factory: job descriptor with the given GenerationConfig fields."""
    def _make(**config) -> EvolutionJob:
        return EvolutionJob(
            job_id="evo_test",
            base_theme_id="default",
            target_ui_id="default-ui",
            config=GenerationConfig(**config),
        )
    return _make


@pytest.fixture
def job(make_job):
    return make_job(param_set_count=20)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point config/output dirs at a temp dir; no provider env leaks in."""
    monkeypatch.setenv("THEMEFORGE_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("THEMEFORGE_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.delenv("THEMEFORGE_LLM_PROVIDER", raising=False)
