"""Main CLI application."""

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer

from os_service.cli.console import console, create_table, dim, error, success, warning
from os_service.config.loader import load_definition
from os_service.config.models import ServiceDescriptor
from os_service.errors import ControlPlaneError, OSServiceError
from os_service.logging import configure_logging
from os_service.manager import ServiceManager
from os_service.strategy import Strategy, parse_strategy
from os_service.templates import render, render_scm_registration

app = typer.Typer(
    name="os-service",
    help="Run programs as native OS services",
    no_args_is_help=True,
)

NameArg = Annotated[str, typer.Argument(help="Service name")]
ArgsArg = Annotated[
    list[str] | None,
    typer.Argument(help="Arguments passed to the command (put them after --)"),
]
DefinitionOpt = Annotated[
    Path | None,
    typer.Option("--definition", "-f", help="TOML service definition file"),
]
CommandOpt = Annotated[
    str | None,
    typer.Option("--command", "-c", help="Executable to run (default: this Python)"),
]
UsernameOpt = Annotated[
    str | None, typer.Option("--username", help="Account to run as (Windows)")
]
PasswordOpt = Annotated[
    str | None, typer.Option("--password", help="Account password (Windows)")
]
DependencyOpt = Annotated[
    list[str] | None,
    typer.Option("--dependency", "-d", help="Service that must start first"),
]
DisplayNameOpt = Annotated[
    str | None, typer.Option("--display-name", help="Human readable name")
]
RunLevelOpt = Annotated[
    list[int] | None,
    typer.Option("--run-level", help="SysV run level to start in (default: 2 3 4 5)"),
]
WantedByOpt = Annotated[
    str | None,
    typer.Option("--wanted-by", help="systemd target (default: multi-user.target)"),
]


def _build_descriptor(
    name: str,
    definition: Path | None,
    command: str | None,
    args: list[str] | None,
    username: str | None,
    password: str | None,
    dependencies: list[str] | None,
    display_name: str | None,
    run_levels: list[int] | None,
    wanted_by: str | None,
) -> ServiceDescriptor:
    """Combine a definition file with command-line overrides."""
    options: dict[str, Any] = {}
    if definition is not None:
        options = load_definition(definition, name).model_dump(
            exclude_unset=True, exclude={"name"}
        )

    overrides = {
        "command": command,
        "args": args,
        "username": username,
        "password": password,
        "dependencies": dependencies,
        "display_name": display_name,
        "run_levels": run_levels,
        "systemd_wanted_by": wanted_by,
    }
    options.update({key: value for key, value in overrides.items() if value})
    return ServiceDescriptor.from_options(name, options)


def _run(coro) -> Any:
    """Run a coroutine, turning os-service errors into a CLI failure."""
    try:
        return asyncio.run(coro)
    except OSServiceError as e:
        error(str(e))
        raise typer.Exit(1) from e


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
) -> None:
    """Run programs as native OS services."""
    configure_logging("DEBUG" if verbose else None, use_rich=True)


@app.command()
def add(
    name: NameArg,
    args: ArgsArg = None,
    definition: DefinitionOpt = None,
    command: CommandOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    dependency: DependencyOpt = None,
    display_name: DisplayNameOpt = None,
    run_level: RunLevelOpt = None,
    wanted_by: WantedByOpt = None,
    enable: Annotated[
        bool,
        typer.Option("--enable/--no-enable", help="Start the service after adding"),
    ] = True,
) -> None:
    """Register a service, then start it."""
    try:
        descriptor = _build_descriptor(
            name,
            definition,
            command,
            args,
            username,
            password,
            dependency,
            display_name,
            run_level,
            wanted_by,
        )
    except (FileNotFoundError, OSServiceError) as e:
        error(str(e))
        raise typer.Exit(1) from e

    manager = ServiceManager()

    async def do_add() -> Strategy:
        strategy = await manager.add_descriptor(descriptor)
        if enable:
            await manager.enable(descriptor.name)
        return strategy

    strategy = _run(do_add())
    state = "added and started" if enable else "added"
    success(f"Service {name} {state} ({strategy.value})")


@app.command()
def remove(
    name: NameArg,
    disable: Annotated[
        bool,
        typer.Option("--disable/--no-disable", help="Stop the service first"),
    ] = True,
) -> None:
    """Stop a service, then unregister it."""
    manager = ServiceManager()

    async def do_remove() -> Strategy:
        if disable:
            try:
                await manager.disable(name)
            except ControlPlaneError as e:
                warning(f"Could not stop {name}: {e}")
        return await manager.remove(name)

    strategy = _run(do_remove())
    success(f"Service {name} removed ({strategy.value})")


@app.command("enable")
def enable_command(name: NameArg) -> None:
    """Start a registered service."""
    strategy = _run(ServiceManager().enable(name))
    success(f"Service {name} started ({strategy.value})")


@app.command("disable")
def disable_command(name: NameArg) -> None:
    """Stop a running service."""
    strategy = _run(ServiceManager().disable(name))
    success(f"Service {name} stopped ({strategy.value})")


@app.command("render")
def render_command(
    name: NameArg,
    args: ArgsArg = None,
    definition: DefinitionOpt = None,
    command: CommandOpt = None,
    dependency: DependencyOpt = None,
    display_name: DisplayNameOpt = None,
    run_level: RunLevelOpt = None,
    wanted_by: WantedByOpt = None,
    strategy: Annotated[
        str | None,
        typer.Option(
            "--strategy",
            "-s",
            help="linux-systemd, linux-sysv, macos-launchd or windows-scm",
        ),
    ] = None,
) -> None:
    """Print the service definition without installing it."""
    try:
        descriptor = _build_descriptor(
            name,
            definition,
            command,
            args,
            None,
            None,
            dependency,
            display_name,
            run_level,
            wanted_by,
        )
        selected = parse_strategy(strategy) if strategy else None
    except (FileNotFoundError, ValueError, OSServiceError) as e:
        error(str(e))
        raise typer.Exit(1) from e

    if selected is None:
        selected = _run(ServiceManager().strategy())

    text = render(selected, descriptor)
    if text is not None:
        typer.echo(text, nl=False)
        return

    registration = render_scm_registration(descriptor)
    table = create_table(
        f"SCM registration ({selected.value})", [("Field", "cyan"), ("Value", "")]
    )
    table.add_row("Name", registration.name)
    table.add_row("Display name", registration.display_name)
    table.add_row("Command line", registration.command_line)
    table.add_row(
        "Dependencies", ", ".join(n for n in registration.dependencies.split("\0") if n)
    )
    console.print(table)


@app.command()
def detect() -> None:
    """Show which service manager this host uses."""
    strategy = _run(ServiceManager().strategy())
    console.print(strategy.value)


@app.command()
def paths() -> None:
    """Show service definition locations."""
    from os_service.config.paths import get_all_paths

    table = create_table("Service Paths", [("Name", "cyan"), ("Path", "")])
    for key, path in get_all_paths().items():
        table.add_row(key, str(path))
    console.print(table)
    dim("Set OS_SERVICE_ROOT to re-root system directories")


if __name__ == "__main__":
    app()
