"""CLI entry point for javabridge.

Each command builds a ``JavaSession`` over a ``LocalHost`` (current
environment plus an optional JSONC settings file) and prints the result.
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..artifact.types import UpdateMode
from ..core.bus import Bus, EventPayload, InstallationStatusChanged
from ..errors import SessionError
from ..host import LocalHost
from ..session import JavaSession
from ..util.log import Log, LogLevel

app = typer.Typer(
    name="javabridge",
    help="javabridge - locate, install and launch the Java language server",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"javabridge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARN, ERROR)",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Print logs to stderr",
    ),
):
    """javabridge - Java tooling bridge for editors."""
    Log.configure(
        level=LogLevel.parse(log_level) if log_level else None,
        console=print_logs,
        file=False,
    )


def _print_status(event: EventPayload) -> None:
    props = event.properties
    detail = f" ({escape(props['detail'])})" if props.get("detail") else ""
    err_console.print(f"[dim]{props['artifact']}: {props['status']}{detail}[/dim]")


def _session(workspace: Optional[Path], settings: Optional[Path]) -> JavaSession:
    root = str((workspace or Path.cwd()).absolute())
    host = LocalHost(root, settings_file=str(settings) if settings else None)
    Bus.subscribe(InstallationStatusChanged, _print_status)
    return JavaSession(host)


def _fail(error: SessionError) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(1)


WorkspaceOption = typer.Option(None, "--workspace", "-w", help="Workspace root (defaults to the current directory)")
SettingsOption = typer.Option(None, "--settings", "-s", help="JSONC file holding the jdtls settings section")


@app.command()
def command(
    workspace: Optional[Path] = WorkspaceOption,
    settings: Optional[Path] = SettingsOption,
):
    """Print the jdtls launch command as JSON."""
    session = _session(workspace, settings)
    try:
        plan = session.language_server_command()
    except SessionError as e:
        _fail(e)
        return

    console.print_json(json.dumps(plan.to_dict()))
    if not session.debugger_loaded:
        err_console.print("[yellow]Debugger not available; debugging is disabled[/yellow]")


@app.command()
def resolve(
    artifact: str = typer.Argument(..., help="Artifact to resolve: jdtls, lombok, debugger or jdk"),
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Update mode override: always, once or never",
    ),
    workspace: Optional[Path] = WorkspaceOption,
    settings: Optional[Path] = SettingsOption,
):
    """Resolve one artifact and print its install path."""
    session = _session(workspace, settings)
    try:
        path = session.resolve_artifact(artifact, mode=UpdateMode.parse(mode) if mode else None)
    except SessionError as e:
        _fail(e)
        return

    console.print(str(path), soft_wrap=True)


@app.command()
def runtime(
    workspace: Optional[Path] = WorkspaceOption,
    settings: Optional[Path] = SettingsOption,
):
    """Show the Java runtime jdtls would run on."""
    session = _session(workspace, settings)
    try:
        descriptor = session.runtime()
    except SessionError as e:
        _fail(e)
        return

    table = Table(show_header=False, box=None)
    table.add_column(style="cyan")
    table.add_column()
    table.add_row("executable", str(descriptor.executable))
    table.add_row("major", str(descriptor.major))
    table.add_row("source", descriptor.source)
    console.print(table)


@app.command("inject-debug")
def inject_debug(
    config_file: Path = typer.Argument(..., help="Debug configuration JSON file"),
    workspace: Optional[Path] = WorkspaceOption,
    settings: Optional[Path] = SettingsOption,
):
    """Print a debug configuration completed by the running language server."""
    try:
        raw = config_file.read_text(encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Error:[/red] Failed to read {escape(str(config_file))}: {escape(str(e))}")
        raise typer.Exit(1)

    session = _session(workspace, settings)
    try:
        configuration = session.prepare_debug_config(raw)
    except SessionError as e:
        _fail(e)
        return

    typer.echo(configuration)


if __name__ == "__main__":
    app()
