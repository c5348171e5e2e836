"""Configuration loading and scaffolding.

Layers, lowest precedence first: model defaults, ``sparkenv.json``, ``SPARKENV_*``
environment variables, explicit keyword overrides (CLI flags).
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from sparkenv.logging import get_logger
from sparkenv.types import ProvisionConfig

logger = get_logger(__name__)

CONFIG_FILENAME = "sparkenv.json"
ENV_PREFIX = "SPARKENV_"
_TRUTHY = {"1", "true", "yes", "on"}


def _config_schema() -> dict:
    with resources.files("sparkenv.schema").joinpath("config.schema.json").open(
        "r", encoding="utf-8"
    ) as f:
        return json.load(f)


def validate_config(data: dict) -> None:
    Draft202012Validator(_config_schema()).validate(data)


def _from_file(path: Path | None, cwd: Path) -> dict[str, Any]:
    if path is None:
        path = cwd / CONFIG_FILENAME
        if not path.exists():
            return {}
    elif not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    validate_config(data)
    logger.debug("loaded config from %s", path)
    return data


def _from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field in ProvisionConfig.model_fields:
        raw = environ.get(ENV_PREFIX + field.upper())
        if raw is None:
            continue
        data[field] = raw.strip().lower() in _TRUTHY if field == "pin_local" else raw
    return data


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    **overrides: Any,
) -> ProvisionConfig:
    data = _from_file(path, cwd or Path.cwd())
    data.update(_from_environ(os.environ if environ is None else environ))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ProvisionConfig(**data)


def write_config(path: Path, config: ProvisionConfig | None = None) -> Path:
    """Write a validated ``sparkenv.json`` to *path* (a file or a directory)."""
    if path.is_dir():
        path = path / CONFIG_FILENAME
    data = (config or ProvisionConfig()).model_dump()
    validate_config(data)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
