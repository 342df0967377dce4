"""
Constants used throughout dockup.

This module defines all constant values used across different modules
to ensure consistency and ease of maintenance.
"""

from pathlib import Path

# Version information
VERSION = "1.0.0"

# Default paths
DEFAULT_CONFIG_PATHS = {
    'root': Path('/etc/dockup/config.json'),
    'user': Path.home() / '.config' / 'dockup' / 'config.json'
}

# Snapshot layout
CONTAINERS_DIR = 'containers'
VOLUMES_DIR = 'volumes'
CONFIG_FILE = 'config.json'
ENV_FILE = 'env.txt'
LABELS_FILE = 'labels.txt'
PORTS_FILE = 'ports.txt'
MOUNTS_FILE = 'volumes.txt'
MANIFEST_FILE = 'manifest.json'
VOLUME_ARCHIVE = 'backup.tar.gz'

# Hidden siblings used while a slot is written or replaced
STAGING_SUFFIX = '.tmp'
RETIRED_SUFFIX = '.old'

# Separators used by the text projections
LABEL_SEPARATOR = ' = '
ARROW_SEPARATOR = ' -> '

# Retention buckets
BUCKET_HOURLY = 'hourly'
BUCKET_DAILY = 'daily'
BUCKET_WEEKLY = 'weekly'
BUCKET_DEFAULT = 'default'
BUCKET_KINDS = (BUCKET_HOURLY, BUCKET_DAILY, BUCKET_WEEKLY, BUCKET_DEFAULT)
PRUNABLE_BUCKETS = (BUCKET_HOURLY, BUCKET_DAILY, BUCKET_WEEKLY)

# Fixed-width formats keep slot names sortable
SLOT_KEY_FORMATS = {
    BUCKET_HOURLY: '%Y-%m-%d_%H',
    BUCKET_DAILY: '%Y-%m-%d',
    BUCKET_WEEKLY: '%Y-%m-%d',
    BUCKET_DEFAULT: '%Y-%m-%d_%H-%M-%S',
}
ARCHIVE_TIMESTAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'

# Default retention counts
DEFAULT_KEEP_HOURLY = 24
DEFAULT_KEEP_DAILY = 7
DEFAULT_KEEP_WEEKLY = 4

# Helper containers
DEFAULT_HELPER_IMAGE = 'alpine:3.20'
HELPER_VOLUME_PATH = '/volume'
HELPER_BACKUP_PATH = '/backup'
IMAGE_DATA_PATH = '/volume-data'
HELPER_LABEL = 'io.dockup.helper'

# Timeouts (in seconds)
BACKUP_OPERATION_TIMEOUT = 3600  # 1 hour
REMOTE_SYNC_TIMEOUT = 3600

# Warn when less than this much space is free before an export
LOW_DISK_SPACE_GB = 1.0

# Environment variables
ENV_PREFIX = 'DOCKUP_'

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
