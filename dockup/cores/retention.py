"""
Retention handling for backup slots.

Slots live directly below a container's backup directory and are named
after their bucket kind, e.g. ``daily_2026-10-19``. Fixed-width date
formats make name order equal creation order, so pruning is a sort.
"""

import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..helpers.constants import BUCKET_DEFAULT, BUCKET_KINDS, PRUNABLE_BUCKETS, SLOT_KEY_FORMATS
from ..helpers.logging import get_logger

logger = get_logger(__name__)


def validate_bucket_kind(bucket_kind: str) -> str:
    if bucket_kind not in BUCKET_KINDS:
        raise ValueError(f"Unknown bucket kind: {bucket_kind}. Must be one of {BUCKET_KINDS}")
    return bucket_kind


def slot_key(bucket_kind: str, now: Optional[datetime] = None) -> str:
    """
    Compute the slot directory name for a bucket kind.

    Weekly slots use a daily-resolution key; how often weekly backups run
    is up to the scheduler.

    Args:
        bucket_kind: hourly, daily, weekly or default
        now: Reference time (defaults to the current local time)

    Returns:
        Slot name such as ``hourly_2026-10-19_14`` or, for the default
        kind, a plain ``2026-10-19_14-03-22`` timestamp
    """
    validate_bucket_kind(bucket_kind)
    now = now or datetime.now()
    stamp = now.strftime(SLOT_KEY_FORMATS[bucket_kind])
    if bucket_kind == BUCKET_DEFAULT:
        return stamp
    return f"{bucket_kind}_{stamp}"


def list_slots(container_backup_root: Path, bucket_kind: str) -> List[Path]:
    """Slots of one bucket kind, newest first."""
    validate_bucket_kind(bucket_kind)
    root = Path(container_backup_root)
    if not root.is_dir():
        return []
    prefix = f"{bucket_kind}_"
    slots = [p for p in root.iterdir() if p.is_dir() and p.name.startswith(prefix)]
    return sorted(slots, key=lambda p: p.name, reverse=True)


def prune(container_backup_root: Path, bucket_kind: str, keep_count: int) -> List[Path]:
    """
    Delete all but the newest keep_count slots of one bucket kind.

    Slots of other kinds are never touched, and unbucketed (default) slots
    are never pruned.

    Args:
        container_backup_root: backup_root/<container_name>
        bucket_kind: Kind whose slots are pruned
        keep_count: Number of newest slots to retain

    Returns:
        Paths that were deleted
    """
    if keep_count < 0:
        raise ValueError(f"keep_count must not be negative: {keep_count}")
    validate_bucket_kind(bucket_kind)
    if bucket_kind not in PRUNABLE_BUCKETS:
        return []

    removed = []
    for slot in list_slots(container_backup_root, bucket_kind)[keep_count:]:
        logger.info(f"Pruning old slot {slot}", extra={'slot': str(slot)})
        shutil.rmtree(slot)
        removed.append(slot)

    if removed:
        logger.debug(f"Pruned {len(removed)} {bucket_kind} slot(s) in {container_backup_root}")
    return removed
