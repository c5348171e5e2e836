"""Synchronous external command execution.

Commands never raise on a non-zero exit; callers decide whether a failure is
fatal by raising :class:`CommandError` themselves.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from sparkenv.logging import get_logger

logger = get_logger(__name__)

# Shell convention for "command not found"
NOT_FOUND = 127


@dataclass
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CommandResult) -> None:
        self.result = result
        detail = result.stderr.strip() or result.stdout.strip()
        msg = f"`{' '.join(result.args)}` failed with code {result.returncode}"
        super().__init__(f"{msg}: {detail}" if detail else msg)

    @property
    def returncode(self) -> int:
        return self.result.returncode


def run_command(
    args: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> CommandResult:
    argv = [str(a) for a in args]
    logger.debug("exec: %s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            env=dict(env) if env is not None else None,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return CommandResult(argv, NOT_FOUND, "", f"{argv[0]}: command not found")
    return CommandResult(argv, proc.returncode, proc.stdout or "", proc.stderr or "")


def require(result: CommandResult) -> CommandResult:
    """Return *result* unchanged, or raise :class:`CommandError` if it failed."""
    if not result.ok:
        raise CommandError(result)
    return result
