from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from sparkenv import pip, process
from sparkenv.process import CommandResult


@dataclass
class FakeToolchain:
    """In-memory pyenv + pip standing in for the real executables."""

    root: Path
    versions: set[str] = field(default_factory=set)
    envs: dict[str, str] = field(default_factory=dict)  # name -> version
    packages: dict[str, set[str]] = field(default_factory=dict)  # env -> packages
    index_reachable: bool = True
    failing_installs: set[str] = field(default_factory=set)
    local_fails: bool = False
    calls: list[list[str]] = field(default_factory=list)

    def site_packages(self, env_name: str) -> Path:
        return self.root / "versions" / env_name / "lib" / "python3.8" / "site-packages"

    def bin_dir(self, env_name: str) -> Path:
        return self.root / "versions" / env_name / "bin"

    def count(self, *prefix: str) -> int:
        return sum(1 for c in self.calls if c[: len(prefix)] == list(prefix))

    def __call__(self, args, *, env=None, cwd=None) -> CommandResult:
        argv = [str(a) for a in args]
        self.calls.append(argv)
        active = (env or {}).get("PYENV_VERSION", "system")
        cmd, rest = argv[:3], argv[3:]

        if argv == ["pyenv", "versions", "--bare"]:
            lines = sorted(self.versions)
            lines += [f"{v}/envs/{n}" for n, v in self.envs.items()] + sorted(self.envs)
            return self._ok(argv, "\n".join(lines) + "\n")

        if argv == ["pyenv", "virtualenvs", "--bare"]:
            lines = [f"{v}/envs/{n}" for n, v in self.envs.items()] + sorted(self.envs)
            return self._ok(argv, "\n".join(lines) + "\n")

        if argv[:2] == ["pyenv", "install"]:
            version = argv[2]
            if version in self.failing_installs:
                return self._fail(argv, 1, f"python-build: definition not found: {version}")
            self.versions.add(version)
            return self._ok(argv)

        if argv[:2] == ["pyenv", "virtualenv"]:
            version, name = argv[2], argv[3]
            if version not in self.versions:
                return self._fail(argv, 1, f"pyenv-virtualenv: `{version}' is not installed")
            self.envs[name] = version
            self.bin_dir(name).mkdir(parents=True, exist_ok=True)
            return self._ok(argv)

        if argv[:2] == ["pyenv", "which"]:
            command = argv[2]
            if command == "python" and active in self.envs:
                return self._ok(argv, f"{self.bin_dir(active) / 'python'}\n")
            if command in self.packages.get(active, set()):
                return self._ok(argv, f"{self.bin_dir(active) / command}\n")
            return self._fail(argv, 127, f"pyenv: {command}: command not found")

        if argv[:2] == ["pyenv", "local"]:
            if self.local_fails:
                return self._fail(argv, 1, "pyenv: cannot write .python-version: Permission denied")
            (Path(cwd) / ".python-version").write_text(argv[2] + "\n", encoding="utf-8")
            return self._ok(argv)

        if cmd == ["pyenv", "exec", "pip"] and rest[:1] == ["install"]:
            package = rest[1]
            if not self.index_reachable:
                return self._fail(argv, 1, "ERROR: Could not find a version that satisfies")
            self.packages.setdefault(active, set()).add(package)
            (self.site_packages(active) / package).mkdir(parents=True, exist_ok=True)
            return self._ok(argv, f"Successfully installed {package}-3.5.1\n")

        if cmd == ["pyenv", "exec", "pip"] and rest[:1] == ["show"]:
            package = rest[1]
            if package not in self.packages.get(active, set()):
                return self._fail(argv, 1, f"WARNING: Package(s) not found: {package}")
            return self._ok(
                argv,
                f"Name: {package}\n"
                "Version: 3.5.1\n"
                "Summary: Apache Spark Python API\n"
                f"Location: {self.site_packages(active)}\n"
                "Requires: py4j\n",
            )

        return self._fail(argv, 1, f"unexpected command: {argv}")

    @staticmethod
    def _ok(argv: list[str], stdout: str = "") -> CommandResult:
        return CommandResult(argv, 0, stdout, "")

    @staticmethod
    def _fail(argv: list[str], code: int, stderr: str) -> CommandResult:
        return CommandResult(argv, code, "", stderr + "\n")


@pytest.fixture
def toolchain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeToolchain:
    fake = FakeToolchain(root=tmp_path / ".pyenv")
    monkeypatch.setattr(process, "run_command", fake)
    return fake


@pytest.fixture
def pypi(monkeypatch: pytest.MonkeyPatch):
    """Route PyPI lookups to an in-process handler: ``pypi(handler)``."""

    def install(handler) -> None:
        real_client = httpx.Client

        def factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            return real_client(*args, **kwargs)

        monkeypatch.setattr(pip.httpx, "Client", factory)

    return install


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated cwd with no config file and no leaked SPARKENV_* settings."""
    wd = tmp_path / "project"
    wd.mkdir()
    monkeypatch.chdir(wd)
    for name in ("PYTHON_VERSION", "ENV_NAME", "PACKAGE", "ENTRY_POINT", "PIN_LOCAL"):
        monkeypatch.delenv(f"SPARKENV_{name}", raising=False)
    monkeypatch.setenv("SPARK_HOME", "")
    monkeypatch.setenv("PYSPARK_PYTHON", "")
    return wd
