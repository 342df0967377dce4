"""
Main CLI application using Typer

Entry point for dockup.
"""

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from dockup.cores.archive_transfer import ArchiveTransfer
from dockup.cores.batch import BatchBackup
from dockup.cores.blacklist import Blacklist
from dockup.cores.restorer import ContainerRestorer
from dockup.cores.runtime_client import RuntimeClient
from dockup.helpers import ui_utils as utils
from dockup.helpers.config import DockupConfig
from dockup.helpers.constants import (
    BUCKET_DAILY,
    BUCKET_DEFAULT,
    BUCKET_HOURLY,
    BUCKET_WEEKLY,
    VERSION,
)
from dockup.helpers.errors import BlacklistedError, ConfigError, DockupError, RuntimeFailure
from dockup.helpers.hooks import failure_line, run_failure_hook
from dockup.helpers.logging import get_logger, setup_logging

logger = get_logger(__name__)
console = utils.console

app = typer.Typer(
    name="dockup",
    help="Back up and restore Docker volumes and containers",
    add_completion=False,
    no_args_is_help=True,
)


@dataclass
class AppContext:
    config: DockupConfig
    debug: bool = False
    _runtime: Optional[RuntimeClient] = None

    @property
    def runtime(self) -> RuntimeClient:
        if self._runtime is None:
            self._runtime = RuntimeClient(
                docker_host=self.config.docker_host,
                timeout=self.config.operation_timeout,
            )
        return self._runtime

    @property
    def blacklist(self) -> Blacklist:
        return Blacklist(self.config.blacklist)

    def transfer(self) -> ArchiveTransfer:
        return ArchiveTransfer(self.runtime, self.config, self.blacklist)


@contextmanager
def command_errors(ctx: typer.Context, command: str):
    """
    Map dockup errors to CLI output and exit codes.

    Blacklist skips are reported as warnings and exit 0; everything else
    runs the failure hook and exits non-zero.
    """
    app_ctx: AppContext = ctx.obj
    try:
        yield
    except BlacklistedError as e:
        utils.print_warning(str(e))
    except DockupError as e:
        exit_code = e.exit_code if isinstance(e, RuntimeFailure) and e.exit_code else 1
        utils.print_error(f"{command} failed: {e}")
        logger.debug(f"{command} failed", exc_info=True)
        run_failure_hook(app_ctx.config.failure_hook, failure_line(e), exit_code, command)
        raise typer.Exit(1)


def _bucket_kind(hourly: bool, daily: bool, weekly: bool) -> str:
    selected = [kind for kind, flag in (
        (BUCKET_HOURLY, hourly),
        (BUCKET_DAILY, daily),
        (BUCKET_WEEKLY, weekly),
    ) if flag]
    if len(selected) > 1:
        raise typer.BadParameter("Use only one of --hourly, --daily, --weekly")
    return selected[0] if selected else BUCKET_DEFAULT


HOURLY_OPTION = typer.Option(False, "--hourly", help="Hourly retention slot")
DAILY_OPTION = typer.Option(False, "--daily", help="Daily retention slot")
WEEKLY_OPTION = typer.Option(False, "--weekly", help="Weekly retention slot")


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config.json",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
):
    """
    dockup - Docker volume and container backups

    Configuration comes from config.json and DOCKUP_* environment variables.
    """
    level = "DEBUG" if debug else "INFO"
    setup_logging(level)
    try:
        config = DockupConfig.load(config_path)
    except ConfigError as e:
        utils.print_error(str(e))
        raise typer.Exit(1)
    if config.log_file:
        setup_logging(level, config.log_file)
    ctx.obj = AppContext(config=config, debug=debug)


@app.command()
def version():
    """Show version information"""
    console.print(f"[cyan]dockup[/cyan] v{VERSION}")


@app.command(name="export")
def export_volume(
    ctx: typer.Context,
    volume: str = typer.Argument(..., help="Volume name or host directory"),
    target_dir: Path = typer.Argument(..., help="Directory receiving the archive"),
):
    """Export a volume to a timestamped .tar.gz archive"""
    with command_errors(ctx, "export"):
        archive = ctx.obj.transfer().export_volume(volume, target_dir)
        utils.print_success(f"Exported {volume} to {archive}")


@app.command(name="import")
def import_volume(
    ctx: typer.Context,
    archive: Path = typer.Argument(..., help="Archive created by export"),
    volume: str = typer.Argument(..., help="Target volume (created if missing)"),
):
    """Merge a .tar.gz archive into a volume"""
    with command_errors(ctx, "import"):
        ctx.obj.transfer().import_volume(archive, volume)
        utils.print_success(f"Imported {archive} into {volume}")


@app.command(name="save")
def save_volume(
    ctx: typer.Context,
    volume: str = typer.Argument(..., help="Volume to save"),
    image: str = typer.Argument(..., help="Image to create, e.g. backup/data:latest"),
):
    """Save a volume into an image"""
    with command_errors(ctx, "save"):
        image_id = ctx.obj.transfer().save_volume_to_image(volume, image)
        utils.print_success(f"Saved {volume} to image {image} ({image_id[:19]})")


@app.command(name="load")
def load_volume(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image created by save"),
    volume: str = typer.Argument(..., help="Target volume (created if missing)"),
):
    """Load a volume from an image created by save"""
    with command_errors(ctx, "load"):
        ctx.obj.transfer().load_volume_from_image(image, volume)
        utils.print_success(f"Loaded image {image} into {volume}")


@app.command(name="backup-container")
def backup_container(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Container to back up"),
    backup_root: Path = typer.Argument(..., help="Backup root directory"),
    hourly: bool = HOURLY_OPTION,
    daily: bool = DAILY_OPTION,
    weekly: bool = WEEKLY_OPTION,
):
    """Snapshot one container's configuration and volumes"""
    bucket_kind = _bucket_kind(hourly, daily, weekly)
    with command_errors(ctx, "backup-container"):
        batch = BatchBackup(ctx.obj.runtime, ctx.obj.config, blacklist=ctx.obj.blacklist)
        result = batch.backup_container(container, backup_root, bucket_kind)
        if result.skipped:
            utils.print_warning(f"{container} is blacklisted, skipping")
            return
        if result.partial:
            utils.print_warning(f"Partial snapshot of {container} in {result.slot_path}")
            for volume, error in result.volumes_failed.items():
                utils.print_warning(f"   - {volume}: {error}")
            raise RuntimeFailure(f"{len(result.volumes_failed)} volume(s) could not be archived")
        utils.print_success(f"Backed up {container} to {result.slot_path}")


@app.command(name="backup-all")
def backup_all(
    ctx: typer.Context,
    backup_root: Path = typer.Argument(..., help="Backup root directory"),
    hourly: bool = HOURLY_OPTION,
    daily: bool = DAILY_OPTION,
    weekly: bool = WEEKLY_OPTION,
):
    """Snapshot every container that is not blacklisted"""
    bucket_kind = _bucket_kind(hourly, daily, weekly)
    with command_errors(ctx, "backup-all"):
        utils.print_header("Docker Backup", f"{backup_root} ({bucket_kind})")
        batch = BatchBackup(ctx.obj.runtime, ctx.obj.config, blacklist=ctx.obj.blacklist)
        summary = batch.run(backup_root, bucket_kind)

        table = utils.create_table(
            "Results",
            [
                ("Container", "cyan", 25),
                ("Result", "white", 12),
                ("Details", "white", 50),
            ]
        )
        for name in summary.succeeded:
            result = "partial" if name in summary.partial else "ok"
            table.add_row(escape(name), result, escape(str(summary.slots[name])))
        for name, reason in summary.skipped:
            table.add_row(escape(name), "skipped", escape(reason))
        console.print(table)

        utils.print_info(f"Succeeded: {len(summary.succeeded)}  Skipped: {len(summary.skipped)}  "
                         f"Total: {summary.total}")
        if summary.partial:
            utils.print_warning(f"Partial snapshots: {', '.join(summary.partial)}")
        if ctx.obj.config.remote.enabled:
            utils.print_info(f"Synced to remote: {len(summary.synced)}")


@app.command(name="restore-container")
def restore_container(
    ctx: typer.Context,
    backup_path: Path = typer.Argument(..., help="Slot, container backup directory or backup root"),
    container: str = typer.Argument(..., help="Container to recreate"),
):
    """Recreate a container and its volumes from a snapshot (not started)"""
    with command_errors(ctx, "restore-container"):
        restorer = ContainerRestorer(ctx.obj.runtime, ctx.obj.config, blacklist=ctx.obj.blacklist)
        container_id = restorer.restore(backup_path, container)
        utils.print_success(f"Created container {container} ({container_id[:12]})")
        utils.print_info(f"Start it with: docker start {container}")


def cli_main():
    """
    Entry point for CLI

    This function is called by the console script entry point.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
