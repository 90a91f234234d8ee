"""CLI entry point: scan plugins, manage and apply named environments."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from .core.config import Config, load_config
from .core.errors import SetupError
from .plugins import (
    Environment,
    activate_environment,
    delete_environment,
    find_environment,
    load_environments,
    load_registry,
    revert,
    save_environment,
    snapshot_environment,
)

console = Console()


def _plugin_table(registry) -> Table:
    table = Table(box=None, pad_edge=False)
    table.add_column("plugin", style="bold")
    table.add_column("state")
    table.add_column("version")
    table.add_column("files", justify="right")
    table.add_column("location", style="dim")
    for p in registry:
        state = "[green]on[/green]" if p.is_selected else "[dim]off[/dim]"
        version = p.active_version
        if len(p.library_paths) > 1:
            version = f"{version or '?'} ({len(p.library_paths)} installed)"
        location = p.active_library_path or p.primary_path
        if location is None and p.user_object_paths:
            location = p.user_object_paths[0]
        if location is None and p.script_paths:
            location = p.script_paths[0]
        table.add_row(p.name, state, version, str(len(p.all_paths())), str(location or ""))
    return table


def _print_errors(errors: list) -> None:
    if errors:
        console.print(f"{len(errors)} problem(s), see warnings above", style="yellow")


@click.group()
@click.option("--app-data", default=None, type=click.Path(file_okay=False), help="Override the app-data folder")
@click.option("--host-major", default=None, help="Host major version, e.g. 8.0")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, app_data: str | None, host_major: str | None, verbose: bool):
    """plugmodes: switch sets of host plugins on and off."""
    ctx.obj = load_config(app_data=app_data, host_major=host_major, verbose=verbose)


@cli.command()
@click.pass_obj
def scan(config: Config):
    """List every plugin found and whether it is enabled."""
    errors: list = []
    registry = load_registry(config, errors=errors)
    if not len(registry):
        console.print("no plugins found", style="dim")
        for root in config.scan_roots:
            console.print(f"  searched {root}", style="dim")
        return
    console.print(_plugin_table(registry))
    _print_errors(errors)


@cli.command()
@click.argument("name")
@click.pass_obj
def apply(config: Config, name: str):
    """Enable exactly the plugins of environment NAME."""
    env = find_environment(config, name)
    if env is None:
        console.print(f"unknown environment: {name}", style="bold")
        sys.exit(1)
    registry = load_registry(config)
    try:
        added, result = activate_environment(config, env, registry)
    except SetupError as e:
        console.print(f"error: {e}", style="bold")
        sys.exit(1)
    if added:
        console.print(f"also enabled (linked): {', '.join(added)}", style="dim")
    console.print(
        f"applied [bold]{env.name}[/bold]: "
        f"{len(result.enabled)} enabled, {len(result.disabled)} disabled"
        + (f", {len(result.links)} link file(s)" if result.links else "")
    )
    _print_errors(result.errors)


@cli.command(name="revert")
@click.argument("name")
@click.pass_obj
def revert_cmd(config: Config, name: str):
    """Undo the last apply of environment NAME."""
    result = revert(config, name)
    console.print(
        f"reverted [bold]{name}[/bold]: {len(result.restored)} restored, "
        f"{len(result.deleted)} removed"
    )
    _print_errors(result.errors)


@cli.group()
def env():
    """Manage saved environments."""


@env.command(name="list")
@click.pass_obj
def env_list(config: Config):
    envs = load_environments(config)
    if not envs:
        console.print("no environments saved", style="dim")
        console.print("use `plugmodes env save` to create one", style="dim")
        return
    for e in envs:
        active = config.manifest_path(e.name).exists()
        mark = " [green](applied)[/green]" if active else ""
        console.print(f"  [bold]{e.name}[/bold]  {len(e.plugins)} plugin(s){mark}")


@env.command(name="show")
@click.argument("name")
@click.pass_obj
def env_show(config: Config, name: str):
    e = find_environment(config, name)
    if e is None:
        console.print(f"unknown environment: {name}", style="bold")
        sys.exit(1)
    console.print(f"[bold]{e.name}[/bold]")
    for p in e.plugins:
        console.print(f"  {p}")


@env.command(name="save")
@click.argument("name")
@click.argument("plugins", nargs=-1)
@click.option("--current", is_flag=True, help="Save the plugins enabled on disk right now")
@click.pass_obj
def env_save(config: Config, name: str, plugins: tuple[str, ...], current: bool):
    """Save environment NAME from PLUGINS (or the current on-disk state)."""
    if current:
        e = snapshot_environment(name, load_registry(config))
        e.plugins.extend(p for p in plugins if p not in e.plugins)
    elif plugins:
        e = Environment(name=name, plugins=list(plugins))
    else:
        console.print("usage: plugmodes env save <name> <plugin>... | --current", style="dim")
        sys.exit(1)
    save_environment(config, e)
    console.print(f"saved [bold]{e.name}[/bold] ({len(e.plugins)} plugin(s))")


@env.command(name="delete")
@click.argument("name")
@click.option("--revert/--no-revert", "revert_files", default=True, help="Undo its last apply first")
@click.pass_obj
def env_delete(config: Config, name: str, revert_files: bool):
    if delete_environment(config, name, revert_files=revert_files):
        console.print(f"deleted [bold]{name}[/bold]")
    else:
        console.print(f"unknown environment: {name}", style="bold")
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
