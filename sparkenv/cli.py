"""sparkenv CLI.

Typical use from an interactive shell::

    eval "$(sparkenv provision)"

Exports are printed on stdout; progress logs and errors go to stderr.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from sparkenv import exports, pip, provision as prov, pyenv
from sparkenv.config import CONFIG_FILENAME, load_config, write_config
from sparkenv.logging import set_verbose
from sparkenv.process import CommandError
from sparkenv.types import ProvisionConfig

app = typer.Typer(add_completion=False, help="Provision a pyenv-managed PySpark workspace")
console = Console()
err_console = Console(stderr=True)


def _config(
    config: str | None,
    python: str | None = None,
    env: str | None = None,
    package: str | None = None,
    entry_point: str | None = None,
    pin_local: bool | None = None,
) -> ProvisionConfig:
    return load_config(
        Path(config) if config else None,
        python_version=python,
        env_name=env,
        package=package,
        entry_point=entry_point,
        pin_local=pin_local,
    )


def _check_format(fmt: str) -> str:
    if fmt not in exports.FORMATS:
        raise typer.BadParameter(f"expected one of {', '.join(exports.FORMATS)}")
    return fmt


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    set_verbose(verbose)


@app.command()
def provision(
    python: str | None = typer.Option(None, "--python", help="Interpreter version to ensure"),
    env: str | None = typer.Option(None, "--env", help="Virtualenv name"),
    package: str | None = typer.Option(None, "--package", help="Distribution to install"),
    entry_point: str | None = typer.Option(
        None, "--entry-point", help="Executable whose presence skips the install"
    ),
    no_pin: bool = typer.Option(False, "--no-pin", help="Skip `pyenv local`"),
    config: str | None = typer.Option(None, "--config", help=f"Path to {CONFIG_FILENAME}"),
    fmt: str = typer.Option("sh", "--format", callback=_check_format, help="sh | fish | json"),
) -> None:
    cfg = _config(config, python, env, package, entry_point, False if no_pin else None)
    try:
        result = prov.provision(cfg)
    except CommandError as exc:
        err_console.print(f"[red]Provisioning failed:[/red] {exc}")
        raise typer.Exit(code=exc.returncode or 1) from exc

    if result.package_install_failed:
        err_console.print(f"[yellow]Install of {cfg.package} failed; exports may be empty.[/yellow]")
    print(exports.render(result.exports, fmt))
    if result.pin_returncode:
        err_console.print(f"[red]`pyenv local {cfg.env_name}` failed.[/red]")
        raise typer.Exit(code=result.pin_returncode)


@app.command("env")
def env_(
    env: str | None = typer.Option(None, "--env", help="Virtualenv name"),
    package: str | None = typer.Option(None, "--package", help="Distribution to inspect"),
    config: str | None = typer.Option(None, "--config", help=f"Path to {CONFIG_FILENAME}"),
    fmt: str = typer.Option("sh", "--format", callback=_check_format, help="sh | fish | json"),
) -> None:
    """Print exports for an already-provisioned environment."""
    cfg = _config(config, env=env, package=package)
    print(exports.render(prov.inspect(cfg), fmt))


@app.command()
def run(
    cmd: list[str] = typer.Argument(..., help="Command to run with the Spark exports set"),
    config: str | None = typer.Option(None, "--config", help=f"Path to {CONFIG_FILENAME}"),
) -> None:
    cfg = _config(config)
    child_env = pyenv.activate(cfg.env_name)
    exports.apply(prov.inspect(cfg), child_env)
    try:
        proc = subprocess.run(cmd, env=child_env, check=False)
    except FileNotFoundError:
        err_console.print(f"[red]Command not found:[/red] {cmd[0]}")
        raise typer.Exit(code=127)
    raise typer.Exit(code=proc.returncode)


@app.command()
def status(
    config: str | None = typer.Option(None, "--config", help=f"Path to {CONFIG_FILENAME}"),
    offline: bool = typer.Option(False, "--offline", help="Skip the PyPI lookup"),
) -> None:
    cfg = _config(config)
    env = pyenv.activate(cfg.env_name)
    metadata = pip.show(cfg.package, env=env)
    latest = None if offline else pip.latest_version(cfg.package)

    table = Table(title=f"sparkenv: {cfg.env_name}")
    table.add_column("Check", style="cyan")
    table.add_column("Value")
    has_version = pyenv.has_version(cfg.python_version)
    has_env = pyenv.has_virtualenv(cfg.env_name)
    table.add_row(f"python {cfg.python_version}", "yes" if has_version else "no")
    table.add_row(f"virtualenv {cfg.env_name}", "yes" if has_env else "no")
    table.add_row(cfg.entry_point, pyenv.which(cfg.entry_point, env=env) or "-")
    table.add_row(f"{cfg.package} installed", metadata.field("Version") or "-")
    table.add_row(f"{cfg.package} latest", latest or "-")
    console.print(table)


@app.command()
def init(
    path: str = typer.Argument(".", help="Directory (or .json file) to write the config to"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    target = Path(path)
    if target.suffix == ".json":
        dest = target
    else:
        target.mkdir(parents=True, exist_ok=True)
        dest = target / CONFIG_FILENAME
    dest.parent.mkdir(parents=True, exist_ok=True)
    if dest.exists() and not force:
        err_console.print(f"[yellow]{dest} exists; use --force to overwrite[/yellow]")
        raise typer.Exit(code=1)
    written = write_config(dest, ProvisionConfig())
    err_console.print(f"[green]Scaffolded:[/green] {written}")


if __name__ == "__main__":
    app()
