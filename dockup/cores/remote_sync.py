"""
Remote replication of backup slots over ssh/scp.

Failures here never fail a backup: they are logged as warnings and
reported back as False.
"""

import shlex
import subprocess
from pathlib import Path
from typing import List

from ..helpers.config import RemoteConfig
from ..helpers.constants import REMOTE_SYNC_TIMEOUT
from ..helpers.logging import get_logger
from ..helpers.system_utils import SystemUtils

logger = get_logger(__name__)


class RemoteSync:
    """Copies finished slots to ``<destination>/<container>/`` on a remote host."""

    def __init__(self, config: RemoteConfig, timeout: int = REMOTE_SYNC_TIMEOUT):
        self.config = config
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _ssh_options(self) -> List[str]:
        return [
            '-i', str(self.config.key_file),
            '-o', 'BatchMode=yes',
            '-o', 'StrictHostKeyChecking=accept-new',
        ]

    def sync(self, slot: Path, container_name: str) -> bool:
        """
        Copy one slot to the remote host.

        Args:
            slot: Local slot directory
            container_name: Container the slot belongs to

        Returns:
            True if the slot was copied
        """
        if not self.enabled:
            return False

        key_file = self.config.key_file
        if key_file is None or not key_file.is_file():
            logger.warning(f"Remote sync skipped: key file not found ({key_file})",
                           extra={'container': container_name})
            return False
        if not SystemUtils.check_command('scp') or not SystemUtils.check_command('ssh'):
            logger.warning("Remote sync skipped: ssh/scp not installed",
                           extra={'container': container_name})
            return False

        remote_dir = f"{self.config.path.rstrip('/')}/{container_name}"
        commands = [
            ['ssh', *self._ssh_options(), self.config.host, f"mkdir -p {shlex.quote(remote_dir)}"],
            ['scp', '-r', '-p', *self._ssh_options(), str(slot), f"{self.config.host}:{remote_dir}/"],
        ]

        for cmd in commands:
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(f"Remote sync of {slot} failed: {e}",
                               extra={'container': container_name})
                return False
            if result.returncode != 0:
                logger.warning(
                    f"Remote sync of {slot} failed ({cmd[0]} exit {result.returncode}): "
                    f"{result.stderr.strip()}",
                    extra={'container': container_name}
                )
                return False

        logger.info(f"Synced {slot} to {self.config.host}:{remote_dir}",
                    extra={'container': container_name})
        return True
