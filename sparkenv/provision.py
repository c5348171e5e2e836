"""The provisioning sequence: version, env, activate, install, export, pin.

Every step is a presence check followed by an optional shell-out. Version
install and env creation raise :class:`CommandError` on failure. The package
install is best-effort, and a failed local pin is recorded on the result after
the exports are derived.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from pathlib import Path

from sparkenv import exports, pip, pyenv
from sparkenv.logging import get_logger
from sparkenv.process import CommandError
from sparkenv.types import ProvisionConfig, ProvisionResult, SparkExports

logger = get_logger(__name__)


def ensure_version(version: str) -> bool:
    if pyenv.has_version(version):
        logger.info("python %s already installed", version)
        return False
    pyenv.install_version(version)
    return True


def ensure_virtualenv(version: str, name: str) -> bool:
    if pyenv.has_virtualenv(name):
        logger.info("virtualenv %s already exists", name)
        return False
    pyenv.create_virtualenv(version, name)
    return True


def ensure_package(package: str, entry_point: str, env: Mapping[str, str]) -> tuple[bool, bool]:
    """Return ``(installed, failed)`` for the package install step."""
    found = pyenv.which(entry_point, env=env)
    if found:
        logger.info("%s found at %s", entry_point, found)
        return False, False
    res = pip.install(package, env=env)
    return res.ok, not res.ok


def collect_exports(package: str, env: Mapping[str, str]) -> SparkExports:
    metadata = pip.show(package, env=env)
    return SparkExports(
        spark_home=exports.derive_spark_home(metadata),
        pyspark_python=pyenv.which("python", env=env) or "",
    )


def inspect(
    config: ProvisionConfig,
    *,
    environ: Mapping[str, str] | None = None,
) -> SparkExports:
    """Derive the exports for an already-provisioned env without changing anything."""
    env = pyenv.activate(config.env_name, environ)
    return collect_exports(config.package, env)


def provision(
    config: ProvisionConfig,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    export_to: MutableMapping[str, str] | None = None,
) -> ProvisionResult:
    result = ProvisionResult(config=config)

    result.installed_version = ensure_version(config.python_version)
    result.created_env = ensure_virtualenv(config.python_version, config.env_name)

    env = pyenv.activate(config.env_name, environ)
    result.installed_package, result.package_install_failed = ensure_package(
        config.package, config.entry_point, env
    )

    result.exports = collect_exports(config.package, env)
    exports.apply(result.exports, export_to)
    if not result.exports.spark_home.strip("/"):
        logger.warning("could not derive SPARK_HOME for %s", config.package)

    if config.pin_local:
        # Exports are already derived; a failed pin only changes the exit code.
        try:
            pyenv.set_local(config.env_name, cwd or Path.cwd())
        except CommandError as exc:
            logger.error("pyenv local %s failed: %s", config.env_name, exc)
            result.pin_returncode = exc.returncode or 1

    logger.info(
        "provisioned %s", config.env_name, extra={"data": result.exports.as_environ()}
    )
    return result
