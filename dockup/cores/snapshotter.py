"""
Container snapshot module for dockup.

Writes one container's configuration and the contents of its mounted
volumes into a backup slot:

    <backup_root>/<container>/<slot>/containers/<container>/config.json
                                                          /env.txt
                                                          /labels.txt
                                                          /ports.txt
                                                          /volumes.txt
    <backup_root>/<container>/<slot>/volumes/<volume>/backup.tar.gz
    <backup_root>/<container>/<slot>/manifest.json
"""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..helpers.config import DockupConfig
from ..helpers.constants import (
    BUCKET_DEFAULT,
    CONFIG_FILE,
    CONTAINERS_DIR,
    ENV_FILE,
    LABELS_FILE,
    MANIFEST_FILE,
    MOUNTS_FILE,
    PORTS_FILE,
    RETIRED_SUFFIX,
    STAGING_SUFFIX,
    VOLUME_ARCHIVE,
    VOLUMES_DIR,
)
from ..helpers.errors import DockupError
from ..helpers.logging import get_logger
from ..types import SNAPSHOT_OK, SNAPSHOT_PARTIAL, SNAPSHOT_SKIPPED, SnapshotResult
from .archive_transfer import ArchiveTransfer
from .blacklist import Blacklist
from .projections import (
    archivable_mounts,
    render_env,
    render_labels,
    render_mounts,
    render_ports,
    spec_from_inspect,
)
from .retention import slot_key
from .runtime_client import RuntimeClient

logger = get_logger(__name__)


class ContainerSnapshotter:
    """
    Captures a container's configuration and volumes into a backup slot.
    """

    def __init__(self, runtime: RuntimeClient, config: DockupConfig,
                 transfer: Optional[ArchiveTransfer] = None,
                 blacklist: Optional[Blacklist] = None):
        """
        Initialize snapshotter.

        Args:
            runtime: Docker runtime client
            config: Application configuration
            transfer: Archive transfer used for volumes
            blacklist: Names to skip; built from config when omitted
        """
        self.runtime = runtime
        self.config = config
        self.blacklist = blacklist if blacklist is not None else Blacklist(config.blacklist)
        self.transfer = transfer or ArchiveTransfer(runtime, config, self.blacklist)

    def snapshot(self, container_name: str, backup_root: Union[str, Path],
                 bucket_kind: str = BUCKET_DEFAULT,
                 now: Optional[datetime] = None) -> SnapshotResult:
        """
        Snapshot one container.

        Args:
            container_name: Container to capture
            backup_root: Root directory of all backups
            bucket_kind: Retention bucket deciding the slot name
            now: Reference time for the slot name

        Returns:
            SnapshotResult; status is ``skipped`` for blacklisted containers
            and ``partial`` if some volume could not be archived

        Raises:
            NotFoundError: If the container does not exist
        """
        inspect_data = self.runtime.inspect_container(container_name)

        if self.blacklist.is_blacklisted(container_name):
            logger.warning(f"Container {container_name} is blacklisted, skipping",
                           extra={'container': container_name})
            return SnapshotResult(container_name=container_name, status=SNAPSHOT_SKIPPED)

        slot = Path(backup_root).expanduser() / container_name / slot_key(bucket_kind, now)
        staging = slot.with_name(f".{slot.name}{STAGING_SUFFIX}")
        if staging.exists():
            logger.warning(f"Removing leftover staging directory {staging}", extra={'slot': str(slot)})
            shutil.rmtree(staging)

        logger.info(f"Snapshotting {container_name} into {slot}",
                    extra={'container': container_name, 'slot': str(slot)})
        result = SnapshotResult(container_name=container_name, status=SNAPSHOT_OK, slot_path=slot)

        # The existing slot stays intact until the new one is complete
        try:
            self._write_config(inspect_data, staging / CONTAINERS_DIR / container_name)
            self._archive_volumes(inspect_data, staging, result)

            if result.volumes_failed:
                result.status = SNAPSHOT_PARTIAL
                logger.warning(
                    f"Snapshot of {container_name} is partial: "
                    f"{len(result.volumes_failed)} volume(s) failed",
                    extra={'container': container_name, 'slot': str(slot)}
                )

            (staging / MANIFEST_FILE).write_text(json.dumps(result.to_manifest(), indent=2) + "\n",
                                                 encoding="utf-8")
            self._swap_in(staging, slot, result)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        return result

    def _swap_in(self, staging: Path, slot: Path, result: SnapshotResult) -> None:
        """
        Move a finished staging directory into place.

        A partial snapshot never replaces a complete slot of the same key.
        """
        if not slot.exists():
            staging.rename(slot)
            return

        if result.partial and _is_complete(slot):
            logger.warning(f"Keeping complete slot {slot}, partial snapshot discarded",
                           extra={'container': result.container_name, 'slot': str(slot)})
            shutil.rmtree(staging)
            return

        logger.info(f"Replacing existing slot {slot}", extra={'slot': str(slot)})
        retired = slot.with_name(f".{slot.name}{RETIRED_SUFFIX}")
        if retired.exists():
            shutil.rmtree(retired)
        slot.rename(retired)
        staging.rename(slot)
        shutil.rmtree(retired)

    def _write_config(self, inspect_data, config_dir: Path) -> None:
        """Write the raw record plus the text projections used at restore time."""
        config_dir.mkdir(parents=True, exist_ok=True)
        spec = spec_from_inspect(inspect_data)

        (config_dir / CONFIG_FILE).write_text(json.dumps(inspect_data, indent=2) + "\n",
                                              encoding="utf-8")
        (config_dir / ENV_FILE).write_text(render_env(spec.env), encoding="utf-8")
        (config_dir / LABELS_FILE).write_text(render_labels(spec.labels), encoding="utf-8")
        (config_dir / PORTS_FILE).write_text(render_ports(spec.ports), encoding="utf-8")
        (config_dir / MOUNTS_FILE).write_text(render_mounts(spec.mounts), encoding="utf-8")

    def _archive_volumes(self, inspect_data, slot: Path, result: SnapshotResult) -> None:
        container = result.container_name
        for volume_name, source in archivable_mounts(inspect_data):
            if self.blacklist.is_blacklisted(volume_name):
                logger.warning(f"Volume {volume_name} is blacklisted, skipping",
                               extra={'container': container, 'volume': volume_name})
                result.volumes_skipped.append(volume_name)
                continue
            if volume_name in result.volumes_archived or volume_name in result.volumes_failed:
                logger.warning(f"Two mounts map to volume name {volume_name}, keeping the first",
                               extra={'container': container, 'volume': volume_name})
                result.volumes_skipped.append(volume_name)
                continue

            try:
                self.transfer.export_volume(source, slot / VOLUMES_DIR / volume_name, VOLUME_ARCHIVE)
                result.volumes_archived.append(volume_name)
            except (DockupError, OSError) as e:
                logger.error(f"Failed to archive volume {volume_name}: {e}",
                             extra={'container': container, 'volume': volume_name})
                result.volumes_failed[volume_name] = str(e)


def _is_complete(slot: Path) -> bool:
    """True if the slot's manifest records a snapshot with no failed volume."""
    try:
        manifest = json.loads((slot / MANIFEST_FILE).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(manifest, dict) and manifest.get("partial") is False
