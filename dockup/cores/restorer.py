"""
Container restore module for dockup.

Recreates a container from a snapshot written by ContainerSnapshotter:
volumes are merged back from their archives, then the container is created
(not started) from the recorded image, env, labels, ports and mounts.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema

from ..helpers.config import DockupConfig
from ..helpers.constants import (
    CONFIG_FILE,
    CONTAINERS_DIR,
    ENV_FILE,
    LABELS_FILE,
    MOUNTS_FILE,
    PORTS_FILE,
    VOLUME_ARCHIVE,
    VOLUMES_DIR,
)
from ..helpers.errors import ConfigInvalidError, NotFoundError, RuntimeFailure
from ..helpers.logging import get_logger
from ..types import ContainerSpec
from .archive_transfer import ArchiveTransfer
from .blacklist import Blacklist
from .projections import (
    mount_source,
    mount_volume_name,
    multiline_env,
    multiline_labels,
    parse_env,
    parse_labels,
    parse_mounts,
    parse_ports,
    render_env,
    render_labels,
    render_mounts,
    render_ports,
    spec_from_inspect,
)
from .runtime_client import RuntimeClient

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).parent.parent / "schemas" / "container_config.schema.json"


@lru_cache(maxsize=1)
def load_config_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def _has_config(slot: Path, container_name: str) -> bool:
    return (slot / CONTAINERS_DIR / container_name / CONFIG_FILE).is_file()


def resolve_slot(backup_path: Union[str, Path], container_name: str) -> Path:
    """
    Find the slot to restore from.

    backup_path may point at a slot, at ``<backup_root>/<container>`` or at
    the backup root itself. In the latter two cases the newest slot (by
    config record modification time) holding a config record wins.

    Raises:
        NotFoundError: If nothing usable exists
        ConfigInvalidError: If slots exist but none has a config record
    """
    path = Path(backup_path).expanduser()
    if not path.exists():
        raise NotFoundError(f"Backup path not found: {path}")

    if (path / CONTAINERS_DIR).is_dir():
        return path

    if (path / container_name).is_dir():
        container_dir = path / container_name
    elif path.name == container_name:
        container_dir = path
    else:
        raise NotFoundError(f"No backup of {container_name} under {path}")

    slots = [p for p in container_dir.iterdir()
             if not p.name.startswith(".") and (p / CONTAINERS_DIR).is_dir()]
    complete = [p for p in slots if _has_config(p, container_name)]
    if complete:
        return max(complete, key=lambda p: (
            (p / CONTAINERS_DIR / container_name / CONFIG_FILE).stat().st_mtime, p.name))
    if slots:
        raise ConfigInvalidError(
            f"No snapshot of {container_name} in {container_dir} has a configuration record"
        )
    raise NotFoundError(f"No snapshots of {container_name} in {container_dir}")


class ContainerRestorer:
    """
    Rebuilds containers and their volume contents from snapshots.
    """

    def __init__(self, runtime: RuntimeClient, config: DockupConfig,
                 transfer: Optional[ArchiveTransfer] = None,
                 blacklist: Optional[Blacklist] = None):
        self.runtime = runtime
        self.config = config
        self.blacklist = blacklist if blacklist is not None else Blacklist(config.blacklist)
        self.transfer = transfer or ArchiveTransfer(runtime, config, self.blacklist)

    def restore(self, backup_path: Union[str, Path], container_name: str) -> str:
        """
        Restore one container from a snapshot.

        Args:
            backup_path: Slot, container backup directory or backup root
            container_name: Container to recreate

        Returns:
            ID of the created container

        Raises:
            NotFoundError: If the backup path or snapshot does not exist
            BlacklistedError: If the container is blacklisted (nothing is touched)
            ConfigInvalidError: If the configuration record is missing or invalid
            RuntimeFailure: If a helper or the create call fails
        """
        path = Path(backup_path).expanduser()
        if not path.exists():
            raise NotFoundError(f"Backup path not found: {path}")
        self.blacklist.check(container_name)

        slot = resolve_slot(path, container_name)
        config_dir = slot / CONTAINERS_DIR / container_name
        inspect_data = self._load_config(config_dir)
        spec = self._build_spec(config_dir, inspect_data, container_name)

        if self._container_exists(container_name):
            raise RuntimeFailure(f"Container {container_name} already exists", 409,
                                 "remove it first or restore under another name")

        # Nothing is written until the image is available
        self.runtime.ensure_image(spec.image)

        logger.info(f"Restoring {container_name} from {slot}",
                    extra={'container': container_name, 'slot': str(slot)})
        self._restore_volumes(slot, inspect_data, container_name)
        return self.runtime.create_container(spec)

    # --------------- Private Methods ---------------

    def _load_config(self, config_dir: Path) -> Dict[str, Any]:
        config_file = config_dir / CONFIG_FILE
        if not config_file.is_file():
            raise ConfigInvalidError(f"Configuration record missing: {config_file}")
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigInvalidError(f"Cannot read configuration record {config_file}: {e}") from e

        # Older records may be the raw `docker inspect` list
        if isinstance(data, list) and len(data) == 1:
            data = data[0]
        try:
            jsonschema.validate(data, load_config_schema())
        except jsonschema.ValidationError as e:
            raise ConfigInvalidError(f"Invalid configuration record {config_file}: {e.message}") from e
        return data

    def _build_spec(self, config_dir: Path, inspect_data: Dict[str, Any],
                    container_name: str) -> ContainerSpec:
        """
        Replay the text projections; a missing file falls back to the same
        projection computed from config.json. Multi-line env and label
        values always come from config.json.
        """
        fallback = spec_from_inspect(inspect_data, name=container_name)

        def read(filename: str, rendered: str) -> str:
            path = config_dir / filename
            return path.read_text(encoding="utf-8") if path.is_file() else rendered

        try:
            env = parse_env(read(ENV_FILE, render_env(fallback.env)))
            labels = parse_labels(read(LABELS_FILE, render_labels(fallback.labels)))
            ports = parse_ports(read(PORTS_FILE, render_ports(fallback.ports)))
            mounts = parse_mounts(read(MOUNTS_FILE, render_mounts(fallback.mounts)))
        except (OSError, ValueError) as e:
            raise ConfigInvalidError(f"Cannot read snapshot of {container_name}: {e}") from e

        env.extend(multiline_env(fallback.env))
        labels.update(multiline_labels(fallback.labels))
        return ContainerSpec(name=container_name, image=fallback.image,
                             env=env, labels=labels, ports=ports, mounts=mounts)

    def _container_exists(self, container_name: str) -> bool:
        try:
            self.runtime.inspect_container(container_name)
            return True
        except NotFoundError:
            return False

    def _restore_volumes(self, slot: Path, inspect_data: Dict[str, Any], container_name: str) -> None:
        volumes_dir = slot / VOLUMES_DIR
        if not volumes_dir.is_dir():
            return

        # Archives go back to the mount they were taken from
        targets = {}
        for mount in inspect_data.get("Mounts") or []:
            name = mount_volume_name(mount)
            if name and name not in targets:
                targets[name] = mount_source(mount)

        for volume_dir in sorted(p for p in volumes_dir.iterdir() if p.is_dir()):
            volume_name = volume_dir.name
            archive = volume_dir / VOLUME_ARCHIVE
            if not archive.is_file():
                logger.warning(f"No archive for volume {volume_name} in {volume_dir}, skipping",
                               extra={'container': container_name, 'volume': volume_name})
                continue
            if self.blacklist.is_blacklisted(volume_name):
                logger.warning(f"Volume {volume_name} is blacklisted, skipping",
                               extra={'container': container_name, 'volume': volume_name})
                continue

            target = targets.get(volume_name, volume_name)
            self.transfer.import_volume(archive, target)
