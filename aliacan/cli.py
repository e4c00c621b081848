import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from aliacan import __version__
from aliacan.backup import BackupManager
from aliacan.codec import CommandPolicy
from aliacan.compression import get_compressor
from aliacan.config import Config
from aliacan.config_store import ConfigStore
from aliacan.models import AliasRecord
from aliacan.service import AliasService
from aliacan.shell_detector import ShellDetector, ShellType

console = Console()
config = Config()


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else config.get("log_level", "WARNING")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str) -> None:
    console.print(f"[red]✗[/] {message}")
    sys.exit(1)


def build_service(file, shell) -> AliasService:
    detector = ShellDetector()
    shell_type = ShellType(shell) if shell else detector.detect_current_shell()

    target = file or config.get("config_file")
    target = Path(target).expanduser() if target else detector.default_config_file(shell_type)
    if target is None:
        fail("No shell configuration file found! Use --file or --shell")

    backup_dir = config.get("backup_dir")
    backups = BackupManager(
        target,
        backup_dir=Path(backup_dir).expanduser() if backup_dir else None,
        compressor=get_compressor(config.get("compressor", "xz")),
        max_backups=config.get("max_backups", 20),
    )
    policy = CommandPolicy.strict() if config.get("strict_commands") else CommandPolicy()
    store = ConfigStore(target, ShellDetector.dialect_for(shell_type))
    return AliasService(store, backups, policy, auto_backup=config.get("auto_backup", True))


@click.group()
@click.option("--file", "-f", type=click.Path(dir_okay=False), help="Shell config file to manage")
@click.option(
    "--shell",
    "-s",
    type=click.Choice([t.value for t in ShellType if t != ShellType.UNKNOWN]),
    help="Target shell (auto-detect if not specified)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.version_option(version=__version__, prog_name="aliacan")
@click.pass_context
def main(ctx, file, shell, verbose):
    """aliacan - manage shell aliases with automatic backups"""
    setup_logging(verbose)
    ctx.obj = build_service(file, shell)


@main.command(name="list")
@click.option("--search", "-q", help="Filter by name, command or description")
@click.option("--fuzzy", is_flag=True, help="Use fuzzy matching for --search")
@click.option("--json", "as_json", is_flag=True, help="Print aliases as JSON")
@click.pass_obj
def list_aliases(service, search, fuzzy, as_json):
    """List aliases defined in the config file"""
    result = service.search(search, fuzzy=fuzzy) if search else service.list()
    if not result:
        fail(result.message)

    aliases = result.value
    if as_json:
        click.echo(json.dumps([alias.to_dict() for alias in aliases], indent=2))
        return

    if not aliases:
        console.print("[yellow]No aliases found.[/] Add one with 'aliacan add'")
        return

    table = Table(title=f"Aliases in {service.store.path}", border_style="cyan")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Command")
    for alias in aliases:
        table.add_row(alias.name, alias.command)
    console.print(table)
    console.print(f"[dim]Total aliases: {len(aliases)}[/]")


@main.command()
@click.option("--name", "-n", prompt=True, help="Alias name")
@click.option("--command", "-c", prompt=True, help="Command to alias")
@click.option("--description", "-d", help="Description of the alias")
@click.pass_obj
def add(service, name, command, description):
    """Add a new alias to the config file"""
    result = service.add(AliasRecord(name=name, command=command, description=description))
    if not result:
        fail(f"Failed to add alias: {result.message}")
    console.print(f"[green]✔[/] Added alias: [cyan]{name}[/] = '{command}'")
    console.print(f"[dim]   For current session, run: source {service.store.path}[/]")


@main.command()
@click.option("--name", "-n", prompt=True, help="Alias name")
@click.option("--command", "-c", prompt=True, help="New command")
@click.pass_obj
def edit(service, name, command):
    """Change the command of an existing alias"""
    result = service.update(AliasRecord(name=name, command=command))
    if not result:
        fail(f"Failed to edit alias: {result.message}")
    console.print(f"[green]✔[/] Edited alias: [cyan]{name}[/] = '{command}'")


@main.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def remove(service, name, yes):
    """Remove an alias from the config file"""
    if not yes and not Confirm.ask(f"Remove alias '{name}'?", console=console):
        console.print("[yellow]Cancelled[/]")
        return
    result = service.remove(name)
    if not result:
        fail(f"Failed to remove alias: {result.message}")
    console.print(f"[green]✔[/] Removed alias: [cyan]{name}[/]")


@main.command()
@click.pass_obj
def backup(service):
    """Create a backup of the config file now"""
    result = service.backups.create_backup()
    if not result:
        fail(result.message)
    console.print(f"[green]✔[/] Backup created: [cyan]{result.value}[/]")


@main.command()
@click.pass_obj
def backups(service):
    """List backups, newest first"""
    entries = service.backups.sorted_backups()
    if not entries:
        console.print(f"[yellow]No backups found in {service.backups.get_backup_directory()}[/]")
        return

    table = Table(title="Backups", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("File", style="cyan")
    table.add_column("Modified")
    table.add_column("Compressed")
    for index, entry in enumerate(entries):
        table.add_row(
            str(index),
            entry.path.name,
            entry.modified_at.strftime("%Y-%m-%d %H:%M:%S"),
            "yes" if entry.compressed else "",
        )
    console.print(table)


@main.command()
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.pass_obj
def restore(service, path):
    """Restore the config file from PATH, or from the newest backup"""
    result = service.restore(Path(path) if path else None)
    if not result:
        fail(f"Restore failed: {result.message}")
    console.print(f"[green]✔[/] Restored [cyan]{service.store.path}[/]")


@main.command()
@click.option("--max", "max_backups", type=int, default=None, help="Number of backups to keep")
@click.pass_obj
def rotate(service, max_backups):
    """Compress older backups and delete the oldest"""
    deleted = service.backups.cleanup_and_compress_old_backups(max_backups or service.backups.max_backups)
    console.print(f"[green]✔[/] Rotation done, deleted {deleted} backup(s)")
    if service.backups.get_last_error():
        console.print(f"[yellow]⚠[/] {service.backups.get_last_error()}")
