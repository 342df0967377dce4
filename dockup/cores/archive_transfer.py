"""
Archive transfer module for dockup.

Copies volume contents to and from compressed tar archives and image
filesystems. All file work happens inside short-lived helper containers;
this module only decides what to mount and which shell script to run.
"""

import os
import shlex
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..helpers.config import DockupConfig
from ..helpers.constants import (
    ARCHIVE_TIMESTAMP_FORMAT,
    HELPER_BACKUP_PATH,
    HELPER_VOLUME_PATH,
    IMAGE_DATA_PATH,
    LOW_DISK_SPACE_GB,
)
from ..helpers.errors import NotFoundError
from ..helpers.logging import get_logger
from ..helpers.system_utils import SystemUtils
from .blacklist import Blacklist
from .runtime_client import RuntimeClient

logger = get_logger(__name__)


# ---- Helper scripts ----

def archive_script(source_dir: str, archive_path: str) -> str:
    """Shell script that packs source_dir into a gzip-compressed tar."""
    return (
        "set -e\n"
        f"tar -czf {shlex.quote(archive_path)} -C {shlex.quote(source_dir)} .\n"
    )


def merge_extract_script(archive_path: str, dest_dir: str) -> str:
    """
    Shell script that extracts an archive and merges it over dest_dir.

    The archive is unpacked into a private staging directory first and then
    copied over the destination: archive entries replace files with the
    same path, everything else already in dest_dir survives. The staging
    directory is removed on every exit path.
    """
    return (
        "set -e\n"
        'stage="$(mktemp -d)"\n'
        "trap 'rm -rf \"$stage\"' EXIT\n"
        f'tar -xzf {shlex.quote(archive_path)} -C "$stage"\n'
        f'cp -a "$stage"/. {shlex.quote(dest_dir.rstrip("/") + "/")}\n'
    )


def merge_copy_script(source_dir: str, dest_dir: str) -> str:
    """Shell script that merges source_dir over dest_dir (source wins)."""
    return (
        "set -e\n"
        f"mkdir -p {shlex.quote(dest_dir)}\n"
        f"cp -a {shlex.quote(source_dir.rstrip('/') + '/.')} {shlex.quote(dest_dir.rstrip('/') + '/')}\n"
    )


def volume_display_name(volume: str) -> str:
    """Name used for blacklisting and archive naming: bind paths use their last component."""
    if volume.startswith("/"):
        return Path(volume).name or volume
    return volume


def split_image_reference(image: str):
    """Split ``repo[:tag]`` without mistaking a registry port for a tag."""
    repository, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return image, None
    return repository, tag


class ArchiveTransfer:
    """
    Moves volume data between Docker volumes, tar.gz files and images.

    A "volume" is either a named Docker volume or an absolute host
    directory (bind mount source).
    """

    def __init__(self, runtime: RuntimeClient, config: DockupConfig,
                 blacklist: Optional[Blacklist] = None):
        """
        Initialize archive transfer.

        Args:
            runtime: Docker runtime client
            config: Application configuration
            blacklist: Names to refuse; built from config when omitted
        """
        self.runtime = runtime
        self.config = config
        self.blacklist = blacklist if blacklist is not None else Blacklist(config.blacklist)
        self.helper_image = config.helper_image

    # --------------- Archives ---------------

    def export_volume(self, volume: str, target_dir: Union[str, Path],
                      archive_name: Optional[str] = None) -> Path:
        """
        Write the contents of a volume to a .tar.gz file.

        Args:
            volume: Volume name or absolute host directory
            target_dir: Directory receiving the archive (created if missing)
            archive_name: File name; defaults to ``<volume>_<timestamp>.tar.gz``

        Returns:
            Path of the written archive

        Raises:
            BlacklistedError: If the volume is blacklisted
            NotFoundError: If the volume does not exist
            RuntimeFailure: If the helper container fails
        """
        name = volume_display_name(volume)
        self.blacklist.check(name, kind="volume")
        self._require_source(volume)

        target_dir = Path(target_dir).expanduser().resolve()
        target_dir.mkdir(parents=True, exist_ok=True)
        if archive_name is None:
            stamp = datetime.now().strftime(ARCHIVE_TIMESTAMP_FORMAT)
            archive_name = f"{name}_{stamp}.tar.gz"
        archive_path = target_dir / archive_name

        free_gb = SystemUtils.get_available_disk_space(target_dir)
        if free_gb < LOW_DISK_SPACE_GB:
            logger.warning(f"Only {free_gb:.2f} GB free in {target_dir}",
                           extra={'volume': name})

        logger.info(f"Exporting volume {name} to {archive_path}", extra={'volume': name})
        self.runtime.run_ephemeral(
            self.helper_image,
            ["sh", "-c", archive_script(HELPER_VOLUME_PATH, f"{HELPER_BACKUP_PATH}/{archive_name}")],
            mounts={
                volume: {"bind": HELPER_VOLUME_PATH, "mode": "ro"},
                str(target_dir): {"bind": HELPER_BACKUP_PATH, "mode": "rw"},
            },
        )
        return archive_path

    def import_volume(self, archive_path: Union[str, Path], volume: str) -> None:
        """
        Merge a .tar.gz archive into a volume, creating the volume if needed.

        Raises:
            BlacklistedError: If the volume is blacklisted
            NotFoundError: If the archive is missing, unreadable or a directory
            RuntimeFailure: If the helper container fails
        """
        name = volume_display_name(volume)
        self.blacklist.check(name, kind="volume")

        archive_path = Path(archive_path).expanduser().resolve()
        if not archive_path.is_file() or not os.access(archive_path, os.R_OK):
            raise NotFoundError(f"Archive not found or not readable: {archive_path}")

        self._ensure_target(volume)
        logger.info(f"Importing {archive_path} into volume {name}", extra={'volume': name})
        self.runtime.run_ephemeral(
            self.helper_image,
            ["sh", "-c", merge_extract_script(f"{HELPER_BACKUP_PATH}/{archive_path.name}",
                                              HELPER_VOLUME_PATH)],
            mounts={
                volume: {"bind": HELPER_VOLUME_PATH, "mode": "rw"},
                str(archive_path.parent): {"bind": HELPER_BACKUP_PATH, "mode": "ro"},
            },
        )

    # --------------- Images ---------------

    def save_volume_to_image(self, volume: str, image: str) -> str:
        """
        Copy a volume into ``/volume-data`` of a new image.

        Returns:
            ID of the committed image
        """
        name = volume_display_name(volume)
        self.blacklist.check(name, kind="volume")
        self._require_source(volume)

        repository, tag = split_image_reference(image)
        logger.info(f"Saving volume {name} to image {image}", extra={'volume': name})
        return self.runtime.commit_ephemeral(
            self.helper_image,
            ["sh", "-c", merge_copy_script(HELPER_VOLUME_PATH, IMAGE_DATA_PATH)],
            mounts={volume: {"bind": HELPER_VOLUME_PATH, "mode": "ro"}},
            repository=repository,
            tag=tag,
        )

    def load_volume_from_image(self, image: str, volume: str) -> None:
        """
        Merge ``/volume-data`` of an image into a volume.

        Raises:
            NotFoundError: If the image does not exist locally
        """
        name = volume_display_name(volume)
        self.blacklist.check(name, kind="volume")
        if not self.runtime.image_exists(image):
            raise NotFoundError(f"Image not found: {image}")

        self._ensure_target(volume)
        logger.info(f"Loading image {image} into volume {name}", extra={'volume': name})
        self.runtime.run_ephemeral(
            image,
            ["sh", "-c", merge_copy_script(IMAGE_DATA_PATH, HELPER_VOLUME_PATH)],
            mounts={volume: {"bind": HELPER_VOLUME_PATH, "mode": "rw"}},
        )

    # --------------- Private Methods ---------------

    def _require_source(self, volume: str) -> None:
        if volume.startswith("/"):
            if not Path(volume).is_dir():
                raise NotFoundError(f"Directory not found: {volume}")
        elif not self.runtime.volume_exists(volume):
            raise NotFoundError(f"Volume not found: {volume}")

    def _ensure_target(self, volume: str) -> None:
        if volume.startswith("/"):
            Path(volume).mkdir(parents=True, exist_ok=True)
        elif not self.runtime.volume_exists(volume):
            self.runtime.create_volume(volume)
