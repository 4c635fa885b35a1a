"""
themeforge/provider_config.py
External model provider configuration

ProviderConfig is built once and passed in explicitly; nothing here is
cached at module level. A remote provider that is selected but not fully
configured is a ConfigError at load time, so no provider call path is ever
reached with incomplete settings.

File format (llm-config.json):
    {
      "provider": "mock",
      "gemini": {"model": "...", "apiKeyEnv": "GEMINI_API_KEY"},
      "nova": {"modelId": "...", "awsRegion": "us-east-1",
               "accessKeyIdEnv": "...", "secretAccessKeyEnv": "..."}
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .app_paths import get_provider_config_path
from .logger import logger

PROVIDERS: Tuple[str, ...] = ("mock", "gemini", "nova")
PROVIDER_ENV_VAR = "THEMEFORGE_LLM_PROVIDER"


class ConfigError(ValueError):
    """Raised when provider configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class GeminiSettings:
    model: str = ""
    api_key_env: Optional[str] = None
    api_key: str = field(default="", repr=False)


@dataclass(frozen=True)
class NovaSettings:
    model_id: str = ""
    aws_region: str = ""
    access_key_id_env: Optional[str] = None
    secret_access_key_env: Optional[str] = None
    session_token_env: Optional[str] = None
    access_key_id: str = field(default="", repr=False)
    secret_access_key: str = field(default="", repr=False)
    session_token: str = field(default="", repr=False)


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider settings with secrets already resolved."""
    provider: str = "mock"
    gemini: GeminiSettings = field(default_factory=GeminiSettings)
    nova: NovaSettings = field(default_factory=NovaSettings)

    @property
    def is_mock(self) -> bool:
        return self.provider == "mock"

    def describe(self) -> Dict[str, Any]:
        """Provider info for results and logs. Never includes secret values."""
        return {
            "provider": self.provider,
            "gemini_model": self.gemini.model or None,
            "nova_model_id": self.nova.model_id or None,
            "aws_region": self.nova.aws_region or None,
            "has_gemini_api_key": bool(self.gemini.api_key),
            "secret_source": {
                "gemini": _source(self.gemini.api_key_env),
                "nova_access_key_id": _source(self.nova.access_key_id_env),
                "nova_secret_access_key": _source(self.nova.secret_access_key_env),
            },
        }

    @classmethod
    def from_dict(
        cls,
        d: Mapping[str, Any],
        provider: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ProviderConfig":
        """
        Build and validate a config from parsed JSON.

        Args:
            d: Parsed config file contents
            provider: Explicit provider choice (wins over env and file)
            environ: Environment for secret lookup (default: os.environ)

        Raises:
            ConfigError: unknown provider, or selected provider incomplete
        """
        if not isinstance(d, Mapping):
            raise ConfigError("provider config root must be an object")
        environ = os.environ if environ is None else environ

        chosen = provider or environ.get(PROVIDER_ENV_VAR) or d.get("provider") or "mock"
        if chosen not in PROVIDERS:
            raise ConfigError(f"unknown provider '{chosen}' (expected one of {', '.join(PROVIDERS)})")

        gemini_raw = d.get("gemini") or {}
        nova_raw = d.get("nova") or {}
        if not isinstance(gemini_raw, Mapping) or not isinstance(nova_raw, Mapping):
            raise ConfigError("'gemini' and 'nova' sections must be objects")

        gemini_key_env = _get(gemini_raw, "api_key_env", "apiKeyEnv")
        gemini = GeminiSettings(
            model=str(_get(gemini_raw, "model") or ""),
            api_key_env=gemini_key_env,
            api_key=_resolve_secret(
                _get(gemini_raw, "api_key", "apiKey"), gemini_key_env,
                "gemini.apiKey/apiKeyEnv", environ, required=chosen == "gemini",
            ),
        )

        nova_required = chosen == "nova"
        access_env = _get(nova_raw, "access_key_id_env", "accessKeyIdEnv")
        secret_env = _get(nova_raw, "secret_access_key_env", "secretAccessKeyEnv")
        token_env = _get(nova_raw, "session_token_env", "sessionTokenEnv")
        nova = NovaSettings(
            model_id=str(_get(nova_raw, "model_id", "modelId") or ""),
            aws_region=str(_get(nova_raw, "aws_region", "awsRegion") or ""),
            access_key_id_env=access_env,
            secret_access_key_env=secret_env,
            session_token_env=token_env,
            access_key_id=_resolve_secret(
                _get(nova_raw, "access_key_id", "accessKeyId"), access_env,
                "nova.accessKeyId/accessKeyIdEnv", environ, required=nova_required,
            ),
            secret_access_key=_resolve_secret(
                _get(nova_raw, "secret_access_key", "secretAccessKey"), secret_env,
                "nova.secretAccessKey/secretAccessKeyEnv", environ, required=nova_required,
            ),
            session_token=_resolve_secret(
                _get(nova_raw, "session_token", "sessionToken"), token_env,
                "nova.sessionToken", environ, required=False,
            ),
        )

        config = cls(provider=chosen, gemini=gemini, nova=nova)
        config.validate()
        return config

    def validate(self) -> None:
        """Check the selected provider has everything it needs."""
        if self.provider == "gemini":
            _require(self.gemini.model, "gemini.model")
            _require(self.gemini.api_key, "gemini.apiKey/apiKeyEnv")
        elif self.provider == "nova":
            _require(self.nova.model_id, "nova.modelId")
            _require(self.nova.aws_region, "nova.awsRegion")
            _require(self.nova.access_key_id, "nova.accessKeyId/accessKeyIdEnv")
            _require(self.nova.secret_access_key, "nova.secretAccessKey/secretAccessKeyEnv")


def _get(d: Mapping[str, Any], *keys: str):
    for key in keys:
        if d.get(key) is not None:
            return d[key]
    return None


def _source(env_key: Optional[str]) -> str:
    return f"env:{env_key}" if env_key else "inline"


def _require(value: str, label: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Missing required config: {label}")


def _resolve_secret(
    raw_value: Any,
    env_key: Any,
    label: str,
    environ: Mapping[str, str],
    required: bool,
) -> str:
    """
    Resolve a secret that is either inline or named by an env var.

    When the env var route is configured it wins; a required secret whose
    env var is unset is an error rather than a silent fallback to inline.
    """
    if isinstance(env_key, str) and env_key.strip():
        value = environ.get(env_key, "")
        if required and not value.strip():
            raise ConfigError(f"Missing required environment secret: {env_key} for {label}")
        return value

    if isinstance(raw_value, str) and raw_value.strip():
        return raw_value
    if required:
        raise ConfigError(f"Missing secret config for {label}")
    return ""


def load_provider_config(
    path: Optional[Path] = None,
    provider: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProviderConfig:
    """
    Load provider configuration from a JSON file.

    A missing file is fine for the mock provider (nothing to configure);
    any other provider requires the file.

    Raises:
        ConfigError: file unreadable/invalid, or selected provider incomplete
    """
    path = Path(path) if path is not None else get_provider_config_path()
    environ = os.environ if environ is None else environ

    if not path.exists():
        chosen = provider or environ.get(PROVIDER_ENV_VAR) or "mock"
        if chosen == "mock":
            logger.debug(f"No provider config at {path}, using mock", component="CONFIG")
            return ProviderConfig()
        raise ConfigError(f"Missing config file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid provider config {path}: {e}") from e

    config = ProviderConfig.from_dict(data, provider=provider, environ=environ)
    logger.info(f"Provider config loaded: {config.provider}", component="CONFIG", details=str(path))
    return config
