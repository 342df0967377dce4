"""Core business logic modules for dockup."""

from .runtime_client import RuntimeClient
from .blacklist import Blacklist
from .archive_transfer import ArchiveTransfer
from .retention import slot_key, prune
from .snapshotter import ContainerSnapshotter
from .restorer import ContainerRestorer
from .remote_sync import RemoteSync
from .batch import BatchBackup

__all__ = [
    'RuntimeClient',
    'Blacklist',
    'ArchiveTransfer',
    'slot_key',
    'prune',
    'ContainerSnapshotter',
    'ContainerRestorer',
    'RemoteSync',
    'BatchBackup',
]
