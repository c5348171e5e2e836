"""pip client, always run through ``pyenv exec`` so the active env is used."""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from sparkenv import process
from sparkenv.logging import get_logger
from sparkenv.process import CommandResult
from sparkenv.types import PackageMetadata

logger = get_logger(__name__)

PIP = ["pyenv", "exec", "pip"]
PYPI_JSON = "https://pypi.org/pypi/{package}/json"


def install(package: str, env: Mapping[str, str] | None = None) -> CommandResult:
    logger.info("installing %s", package)
    res = process.run_command([*PIP, "install", package], env=env)
    if not res.ok:
        logger.warning(
            "pip install %s failed",
            package,
            extra={"data": {"argv": res.args, "returncode": res.returncode}},
        )
    return res


def parse_show_output(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in text.splitlines():
        if ": " not in line:
            continue
        key, value = line.split(": ", 1)
        fields[key.strip()] = value.strip()
    return fields


def show(package: str, env: Mapping[str, str] | None = None) -> PackageMetadata:
    res = process.run_command([*PIP, "show", package], env=env)
    if not res.ok:
        logger.warning(
            "pip show %s failed",
            package,
            extra={"data": {"argv": res.args, "returncode": res.returncode}},
        )
        return PackageMetadata()
    return PackageMetadata(fields=parse_show_output(res.stdout))


def latest_version(package: str, timeout: float = 5.0) -> str | None:
    """Best-effort lookup of the newest release on PyPI."""
    try:
        with httpx.Client(timeout=timeout) as client:
            resp = client.get(PYPI_JSON.format(package=package))
            if resp.status_code != 200:
                return None
            return resp.json().get("info", {}).get("version")
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("pypi lookup for %s failed: %s", package, exc)
        return None
