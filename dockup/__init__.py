################################################################################
# DOCKUP
#
# @file:        __init__.py
# @module:      dockup
# @description: Exposes version, logging, and core components for package consumers.
# @repository:  https://github.com/dockup/dockup
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT License: see LICENSE or https://opensource.org/licenses/MIT
################################################################################

"""
dockup: backups of Docker volumes and containers.

Copies volume data between Docker volumes, tar.gz archives and images, and
snapshots/restores a container's configuration together with its volumes.
"""

from .helpers.constants import VERSION

__version__ = VERSION

from .helpers.logging import get_logger, setup_logging
from .helpers.config import DockupConfig
from .helpers.errors import (
    DockupError,
    NotFoundError,
    BlacklistedError,
    RuntimeFailure,
    ConfigInvalidError,
    ConfigError,
)
from .types import ContainerSpec, SnapshotResult, BatchSummary
from .cores import (
    ArchiveTransfer,
    BatchBackup,
    Blacklist,
    ContainerRestorer,
    ContainerSnapshotter,
    RemoteSync,
    RuntimeClient,
)

__all__ = [
    "VERSION",
    "get_logger",
    "setup_logging",
    "DockupConfig",
    "DockupError",
    "NotFoundError",
    "BlacklistedError",
    "RuntimeFailure",
    "ConfigInvalidError",
    "ConfigError",
    "ContainerSpec",
    "SnapshotResult",
    "BatchSummary",
    "ArchiveTransfer",
    "BatchBackup",
    "Blacklist",
    "ContainerRestorer",
    "ContainerSnapshotter",
    "RemoteSync",
    "RuntimeClient",
]
