"""Thin client for the pyenv interpreter version manager.

Presence checks are plain substring matches over pyenv's listing output,
so ``3.8.1`` is considered present when ``3.8.13`` is installed.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from sparkenv import process
from sparkenv.logging import get_logger

logger = get_logger(__name__)

PYENV = "pyenv"


def versions() -> str:
    return process.run_command([PYENV, "versions", "--bare"]).stdout


def has_version(version: str) -> bool:
    return version in versions()


def install_version(version: str) -> None:
    logger.info("installing python %s", version)
    process.require(process.run_command([PYENV, "install", version]))


def virtualenvs() -> str:
    return process.run_command([PYENV, "virtualenvs", "--bare"]).stdout


def has_virtualenv(name: str) -> bool:
    return name in virtualenvs()


def create_virtualenv(version: str, name: str) -> None:
    logger.info("creating virtualenv %s (python %s)", name, version)
    process.require(process.run_command([PYENV, "virtualenv", version, name]))


def activate(name: str, env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a copy of *env* with *name* selected, like ``pyenv shell``."""
    activated = dict(os.environ if env is None else env)
    activated["PYENV_VERSION"] = name
    return activated


def which(command: str, env: Mapping[str, str] | None = None) -> str | None:
    res = process.run_command([PYENV, "which", command], env=env)
    if not res.ok:
        return None
    path = res.stdout.strip()
    return path or None


def set_local(name: str, cwd: Path) -> None:
    logger.info("pinning %s in %s", name, cwd)
    process.require(process.run_command([PYENV, "local", name], cwd=cwd))
