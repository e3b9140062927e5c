"""Load and save engine configuration (JSON file + environment overrides)."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import AgentConfig, ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".tether" / "config.json"


def config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("TETHER_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s is not a JSON object, ignoring", path)
        return {}
    return data


def load_config(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> AgentConfig:
    """Build an AgentConfig from ``path`` then apply environment overrides.

    A missing or malformed file yields defaults. ``TETHER_API_KEY`` wins over
    the vendor variable (``ANTHROPIC_API_KEY`` etc.), which only fills an empty key.
    """
    env = os.environ if env is None else env
    file_path = Path(path).expanduser() if path else config_path(env)
    data = _read_file(file_path)

    if env.get("TETHER_PROVIDER"):
        data["provider"] = env["TETHER_PROVIDER"]
    if env.get("TETHER_MODEL"):
        data["model"] = env["TETHER_MODEL"]
    if env.get("TETHER_API_KEY"):
        data["api_key"] = env["TETHER_API_KEY"]

    provider = ProviderKind.parse(data.get("provider"))
    if not data.get("api_key") and env.get(provider.api_key_env_var()):
        data["api_key"] = env[provider.api_key_env_var()]

    try:
        config = AgentConfig.model_validate(data)
    except ValidationError as e:
        logger.warning("Invalid config in %s, using defaults: %s", file_path, e)
        config = AgentConfig()
    logger.debug("Loaded config: provider=%s model=%s", config.provider, config.resolved_model)
    return config


def save_config(config: AgentConfig, path: str | Path | None = None) -> Path:
    file_path = Path(path).expanduser() if path else config_path()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    return file_path
