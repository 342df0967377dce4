"""Helper modules and utilities for dockup."""

from .config import DockupConfig, RetentionConfig, RemoteConfig
from .constants import VERSION, DEFAULT_CONFIG_PATHS
from .logging import get_logger, setup_logging
from .system_utils import SystemUtils

__all__ = [
    'DockupConfig',
    'RetentionConfig',
    'RemoteConfig',
    'VERSION',
    'DEFAULT_CONFIG_PATHS',
    'get_logger',
    'setup_logging',
    'SystemUtils',
]
