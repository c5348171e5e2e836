"""Derive, apply and render the Spark environment variables."""

from __future__ import annotations

import json
import os
import shlex
from collections.abc import MutableMapping

from sparkenv.types import PackageMetadata, SparkExports

FORMATS = ("sh", "fish", "json")


def derive_spark_home(metadata: PackageMetadata) -> str:
    # Empty metadata gives "/", matching what a failed install has always produced.
    return f"{metadata.field('Location')}/{metadata.field('Name')}"


def fish_quote(value: str) -> str:
    """Quote *value* for fish, which still honours backslash escapes in single quotes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def apply(exports: SparkExports, environ: MutableMapping[str, str] | None = None) -> None:
    target = os.environ if environ is None else environ
    target.update(exports.as_environ())


def render(exports: SparkExports, fmt: str = "sh") -> str:
    env = exports.as_environ()
    if fmt == "sh":
        return "\n".join(f"export {k}={shlex.quote(v)}" for k, v in env.items())
    if fmt == "fish":
        return "\n".join(f"set -gx {k} {fish_quote(v)};" for k, v in env.items())
    if fmt == "json":
        return json.dumps(env, indent=2)
    raise ValueError(f"Unsupported export format: {fmt} (expected one of {', '.join(FORMATS)})")
