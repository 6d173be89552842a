"""
modbridge CLI - Command line interface for managing mods on a device.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import Config, DEFAULT_DATA_DIR, get_config, reset_config
from .remote.adb import AdbBridge
from .remote.port import RemoteCommandError
from .mods.discovery import DiscoveryResult
from .mods.manager import ModManager

console = Console()


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )


def run_async(coro):
    """Run an async function."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        return loop.run_until_complete(coro)


def _load_config(ctx) -> Config:
    return get_config(ctx.obj['data_dir'])


def _make_port(ctx, config: Config):
    # Tests inject a fake device through the context object
    port = ctx.obj.get('port')
    if port is not None:
        return port
    return AdbBridge(
        adb_path=config.adb_path,
        serial=config.device_serial,
        timeout=config.command_timeout,
    )


def _make_manager(ctx) -> ModManager:
    config = _load_config(ctx)
    if not config.app_id:
        console.print("[red]No target app configured. Run: modbridge init --app-id <package>[/red]")
        sys.exit(1)
    return ModManager(_make_port(ctx, config), config)


def _show_discovery_errors(result: DiscoveryResult) -> None:
    for error in result.errors:
        console.print(f"[yellow]⚠️  {error}[/yellow]")


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--data-dir', type=click.Path(), help='Data directory')
@click.pass_context
def main(ctx, verbose, data_dir):
    """modbridge - install and remove mods on a remote device"""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['data_dir'] = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
    reset_config()
    setup_logging(verbose)


@main.command()
@click.option('--app-id', required=True, help='Package id of the target application')
@click.option('--serial', '-s', help='adb serial of the device')
@click.option('--adb', 'adb_path', help='Path to the adb executable')
@click.pass_context
def init(ctx, app_id: str, serial: Optional[str], adb_path: Optional[str]):
    """Configure the target application and device."""
    config = _load_config(ctx)
    config.app_id = app_id
    if serial:
        config.device_serial = serial
    if adb_path:
        config.adb_path = adb_path
    config.save()

    console.print("\n[bold green]✓ Configuration saved[/bold green]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    layout = config.remote_layout()
    table.add_row("App", config.app_id)
    table.add_row("Device", config.device_serial or "(default)")
    table.add_row("Mods", layout.mods_dir)
    table.add_row("Libraries", layout.libs_dir)
    table.add_row("Manifests", layout.manifests_dir)
    table.add_row("Config", str(config.config_path))
    console.print(table)


@main.command()
@click.pass_context
def devices(ctx):
    """List connected devices."""
    config = _load_config(ctx)
    bridge = AdbBridge(adb_path=config.adb_path, timeout=config.command_timeout)

    try:
        serials = run_async(bridge.devices())
    except RemoteCommandError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if not serials:
        console.print("[yellow]No devices connected.[/yellow]")
        return

    for serial in serials:
        marker = " [green](selected)[/green]" if serial == config.device_serial else ""
        console.print(f"  • {serial}{marker}")


@main.command('list')
@click.pass_context
def list_mods(ctx):
    """List installed mods."""
    manager = _make_manager(ctx)

    try:
        result = run_async(manager.load())
    except RemoteCommandError as e:
        console.print(f"[red]Could not read installed mods: {e}[/red]")
        sys.exit(1)

    _show_discovery_errors(result)

    mods = manager.installed()
    if not mods:
        console.print("[yellow]No mods installed.[/yellow]")
        return

    console.print(f"\n[bold]Installed Mods ({manager.config.app_id})[/bold]\n")

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Game Version")
    table.add_column("Files", justify="right")
    table.add_column("Libraries", justify="right")

    for m in sorted(mods, key=lambda m: m.id):
        table.add_row(
            m.id, m.name, m.version, m.game_version or "-",
            str(len(m.mod_files)), str(len(m.library_files)),
        )

    console.print(table)


@main.command()
@click.argument('mod_id')
@click.pass_context
def info(ctx, mod_id: str):
    """Show details of an installed mod."""
    manager = _make_manager(ctx)

    try:
        run_async(manager.load())
    except RemoteCommandError as e:
        console.print(f"[red]Could not read installed mods: {e}[/red]")
        sys.exit(1)

    m = manager.get(mod_id)
    if not m:
        console.print(f"[red]Mod '{mod_id}' is not installed.[/red]")
        sys.exit(1)

    console.print(f"\n[bold]Mod: {m.name or m.id}[/bold]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("ID", m.id)
    table.add_row("Version", m.version or "-")
    table.add_row("Intended for game version", m.game_version or "-")
    console.print(table)

    if m.mod_files:
        console.print("\n[bold]Mod files:[/bold]")
        for path in m.mod_files:
            console.print(f"  • {path}")

    if m.library_files:
        console.print("\n[bold]Libraries:[/bold]")
        for path in m.library_files:
            others = [i for i in manager.registry.retaining_mods(path) if i != m.id]
            shared = f" [dim](shared with {', '.join(others)})[/dim]" if others else ""
            console.print(f"  • {path}{shared}")


@main.command()
@click.argument('archive', type=click.Path(dir_okay=False))
@click.pass_context
def install(ctx, archive: str):
    """Install a mod archive."""
    manager = _make_manager(ctx)

    async def _install():
        result = await manager.load()
        _show_discovery_errors(result)
        return await manager.install(Path(archive))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("Connecting to device...", total=None)
        manager.on_progress = lambda message: progress.update(task, description=message)

        try:
            record = run_async(_install())
        except RemoteCommandError as e:
            console.print(f"[red]Could not read installed mods: {e}[/red]")
            sys.exit(1)

    for message in record.messages:
        console.print(f"[dim]{message}[/dim]")

    if not record.ok:
        console.print(f"\n[red]✗ Error while installing mod: {record.error}[/red]")
        sys.exit(1)

    console.print(f"\n[bold green]✓ Installed {record.mod_id}[/bold green]")


@main.command()
@click.argument('mod_id')
@click.pass_context
def uninstall(ctx, mod_id: str):
    """Uninstall a mod by id."""
    manager = _make_manager(ctx)

    async def _uninstall():
        result = await manager.load()
        _show_discovery_errors(result)
        return await manager.uninstall(mod_id)

    try:
        record = run_async(_uninstall())
    except RemoteCommandError as e:
        console.print(f"[red]Could not read installed mods: {e}[/red]")
        sys.exit(1)

    for message in record.messages:
        console.print(f"[dim]{message}[/dim]")

    if record.removal and record.removal.retained:
        console.print("\n[bold]Libraries kept for other mods:[/bold]")
        for path, owners in record.removal.retained.items():
            console.print(f"  • {path} [dim]({', '.join(owners)})[/dim]")

    if not record.ok:
        console.print(f"\n[red]✗ Error while uninstalling mod: {record.error}[/red]")
        sys.exit(1)

    console.print(f"\n[bold green]✓ Uninstalled {mod_id}[/bold green]")


if __name__ == "__main__":
    main()
