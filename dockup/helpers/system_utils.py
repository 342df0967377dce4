"""
System utilities module for dockup.

Resource probes used before writing archives to disk.
"""

import shutil
from pathlib import Path
from typing import Union

import psutil

from .logging import get_logger

logger = get_logger(__name__)


def _disk_probe_base(path: Union[str, Path]) -> str:
    """
    Return the nearest existing directory for a disk usage probe.

    Targets are often created on demand, so walk up until something exists.
    """
    candidate = Path(path).expanduser()
    try:
        while not candidate.exists() and candidate != candidate.parent:
            candidate = candidate.parent
    except OSError:
        return "/"
    return str(candidate)


class SystemUtils:
    """System probes for disk space and external tools."""

    @staticmethod
    def get_available_disk_space(path: Union[str, Path] = '/') -> float:
        """
        Get available disk space in gigabytes.

        Args:
            path: Path to check disk space for (need not exist yet)

        Returns:
            Available disk space in GB
        """
        try:
            usage = psutil.disk_usage(_disk_probe_base(path))
            return usage.free / (1024 ** 3)  # Convert to GB
        except OSError as e:
            logger.error(f"Failed to get disk space: {e}")
            return 0.0

    @staticmethod
    def check_command(name: str) -> bool:
        """Check if an executable is on PATH."""
        return shutil.which(name) is not None
