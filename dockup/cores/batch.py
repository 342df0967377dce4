"""
Batch backup (backup-all) for dockup.

Snapshots every container the daemon knows about, one after another.
A failing container never stops the batch; it is recorded as skipped.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..helpers.config import DockupConfig
from ..helpers.constants import BUCKET_DEFAULT
from ..helpers.errors import DockupError
from ..helpers.logging import get_logger
from ..types import BatchSummary, SnapshotResult
from .blacklist import Blacklist
from .remote_sync import RemoteSync
from .retention import prune, validate_bucket_kind
from .runtime_client import RuntimeClient
from .snapshotter import ContainerSnapshotter

logger = get_logger(__name__)


class BatchBackup:
    """
    Orchestrates snapshot, prune and remote sync for all containers.
    """

    def __init__(self, runtime: RuntimeClient, config: DockupConfig,
                 snapshotter: Optional[ContainerSnapshotter] = None,
                 remote: Optional[RemoteSync] = None,
                 blacklist: Optional[Blacklist] = None):
        self.runtime = runtime
        self.config = config
        self.blacklist = blacklist if blacklist is not None else Blacklist(config.blacklist)
        self.snapshotter = snapshotter or ContainerSnapshotter(runtime, config, blacklist=self.blacklist)
        self.remote = remote or RemoteSync(config.remote)

    def backup_container(self, name: str, backup_root: Union[str, Path],
                         bucket_kind: str = BUCKET_DEFAULT,
                         now: Optional[datetime] = None) -> SnapshotResult:
        """
        Snapshot one container, prune its old slots and replicate the new one.

        Pruning and remote sync problems are warnings only.

        Raises:
            NotFoundError: If the container does not exist
            RuntimeFailure: If the runtime cannot be queried
        """
        validate_bucket_kind(bucket_kind)
        backup_root = Path(backup_root).expanduser()
        result = self.snapshotter.snapshot(name, backup_root, bucket_kind, now)
        if result.skipped:
            return result

        keep_count = self.config.retention.keep_count(bucket_kind)
        if keep_count is not None:
            try:
                prune(backup_root / name, bucket_kind, keep_count)
            except OSError as e:
                logger.warning(f"Pruning {bucket_kind} slots of {name} failed: {e}",
                               extra={'container': name})

        if self.remote.enabled:
            result.synced = self.remote.sync(result.slot_path, name)
        return result

    def run(self, backup_root: Union[str, Path], bucket_kind: str = BUCKET_DEFAULT,
            now: Optional[datetime] = None) -> BatchSummary:
        """
        Back up every non-blacklisted container.

        Args:
            backup_root: Root directory of all backups
            bucket_kind: Retention bucket for the new slots
            now: Reference time, shared by all slots of this run

        Returns:
            BatchSummary with succeeded and skipped containers
        """
        validate_bucket_kind(bucket_kind)
        now = now or datetime.now()
        summary = BatchSummary(bucket_kind=bucket_kind)

        names = self.runtime.list_container_names()
        logger.info(f"Backing up {len(names)} container(s) into {backup_root} ({bucket_kind})")

        for name in names:
            if self.blacklist.is_blacklisted(name):
                logger.warning(f"Container {name} is blacklisted, skipping",
                               extra={'container': name})
                summary.skipped.append((name, "blacklisted"))
                continue

            try:
                result = self.backup_container(name, backup_root, bucket_kind, now)
            except (DockupError, OSError) as e:
                logger.error(f"Backup of {name} failed: {e}", extra={'container': name})
                summary.skipped.append((name, str(e)))
                continue
            if result.skipped:
                summary.skipped.append((name, "blacklisted"))
                continue

            summary.succeeded.append(name)
            summary.slots[name] = result.slot_path
            if result.partial:
                summary.partial.append(name)
            if result.synced:
                summary.synced.append(name)

        logger.info(
            f"Backup finished: {len(summary.succeeded)} succeeded, "
            f"{len(summary.skipped)} skipped, {len(summary.partial)} partial"
        )
        return summary
