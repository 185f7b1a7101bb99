"""CLI for inspecting and initializing the node configuration (Typer + Rich)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from birdnet_core.config import (
    Settings,
    SettingsValidator,
    TargetValidationError,
    create_default_config,
    find_config_file,
    generate_random_secret,
    get_default_config_paths,
    load_settings,
    validate_target,
)
from birdnet_core.config._validate import split_findings
from birdnet_core.errors import CategorizedError, SettingsValidationError
from birdnet_core.logging_config import configure_file_logging, init_logging, shutdown_logging

logger = logging.getLogger("birdnet_core.cli")

app = typer.Typer(
    name="birdnet-config",
    help="Inspect and initialize the BirdNET-Go node configuration.",
    no_args_is_help=True,
)
console = Console()


SECRET_KEYS = frozenset(
    {
        "password",
        "client_secret",
        "session_secret",
        "api_key",
        "accesskeyid",
        "secretaccesskey",
        "encryption_key",
    }
)
MASK = "********"

ConfigDirOption = Annotated[
    Optional[Path],
    typer.Option("--config-dir", "-c", help="Directory holding config.yaml (overrides the search paths)"),
]


@app.callback()
def main(ctx: typer.Context) -> None:
    """Load .env before any command runs, for local use."""
    load_dotenv()
    init_logging()
    ctx.call_on_close(shutdown_logging)


def _config_paths(config_dir: Path | None) -> list[Path]:
    if config_dir is not None:
        return [config_dir]
    return get_default_config_paths()


def _load(config_dir: Path | None) -> tuple[Settings, Path]:
    try:
        settings, config_path = load_settings(_config_paths(config_dir))
    except CategorizedError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    configure_file_logging(settings.main.log)
    logger.info("Settings loaded", extra={"operation": "load-settings", "path": str(config_path)})
    return settings, config_path


def mask_secrets(data: Any) -> Any:
    """Replace non-empty secret values in a dumped settings tree."""
    if isinstance(data, dict):
        return {
            key: (MASK if key in SECRET_KEYS and value else mask_secrets(value))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_secrets(item) for item in data]
    return data


@app.command()
def show(
    config_dir: ConfigDirOption = None,
    reveal: Annotated[bool, typer.Option("--reveal", help="Print secrets in clear text")] = False,
) -> None:
    """Print the effective persisted settings as YAML."""
    settings, config_path = _load(config_dir)
    data = settings.persisted()
    if not reveal:
        data = mask_secrets(data)

    console.print(f"[dim]# {config_path}[/]")
    console.print(Syntax(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), "yaml"))


@app.command()
def check(config_dir: ConfigDirOption = None) -> None:
    """Load and validate the configuration; exit 1 when it is not usable."""
    settings, config_path = _load(config_dir)
    errors, warnings = split_findings(SettingsValidator().validate(settings))

    if errors or warnings:
        table = Table(title=f"Findings for {config_path}")
        table.add_column("Severity")
        table.add_column("Field", style="cyan")
        table.add_column("Message")
        for finding in errors:
            table.add_row("[red]error[/]", finding.field, finding.message)
        for finding in warnings:
            table.add_row("[yellow]warning[/]", finding.field, finding.message)
        console.print(table)

    if errors:
        err = SettingsValidationError(errors, warnings, {"path": str(config_path)})
        console.print(Panel(escape(str(err)), title="[red]Configuration invalid[/]"))
        raise typer.Exit(1)

    console.print(f"[green]Configuration OK:[/] {config_path} ({len(warnings)} warning(s))")


@app.command()
def init(config_dir: ConfigDirOption = None) -> None:
    """Write the default config.yaml if none exists yet."""
    paths = _config_paths(config_dir)
    existing = find_config_file(paths)
    if existing is not None:
        console.print(f"[yellow]Config already exists:[/] {existing}")
        return

    try:
        config_path = create_default_config(paths)
    except CategorizedError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)
    logger.info("Default config created", extra={"operation": "create-default-config", "path": str(config_path)})
    console.print(f"[green]Created:[/] {config_path}")


@app.command()
def targets(config_dir: ConfigDirOption = None) -> None:
    """Validate every configured backup target."""
    settings, _ = _load(config_dir)
    if not settings.backup.targets:
        console.print("[yellow]No backup targets configured.[/]")
        return

    table = Table(title="Backup targets")
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Enabled")
    table.add_column("Status")

    failed = 0
    for i, target in enumerate(settings.backup.targets):
        try:
            validate_target(target)
            status = "[green]ok[/]"
        except TargetValidationError as e:
            status = f"[red]{escape(str(e))}[/]"
            if target.enabled:
                failed += 1
        table.add_row(str(i), target.type, "yes" if target.enabled else "no", status)

    console.print(table)
    if failed:
        raise typer.Exit(1)


@app.command()
def secret() -> None:
    """Print a freshly generated URL-safe secret."""
    value = generate_random_secret()
    if value is None:
        console.print("[red]Error:[/] could not read from the system entropy source")
        raise typer.Exit(1)
    typer.echo(value)


if __name__ == "__main__":
    app()
