################################################################################
# DOCKUP
#
# @file:        projections.py
# @module:      dockup.cores
# @description: Container inspect data <-> ContainerSpec <-> text projections
# @repository:  https://github.com/dockup/dockup
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT License: see LICENSE or https://opensource.org/licenses/MIT
################################################################################

"""
Conversions between container inspect records, ContainerSpec and the
line-based text files stored next to config.json in a snapshot.

The text files (env.txt, labels.txt, ports.txt, volumes.txt) are what the
restorer replays; parse_* is the exact inverse of render_*. Env and label
values spanning several lines are left out of the text files and taken
from config.json at restore time.

Example:
    >>> spec = spec_from_inspect(inspect_data)
    >>> render_ports(spec.ports)
    '80/tcp -> 0.0.0.0:8080\\n'
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..helpers.constants import ARROW_SEPARATOR, LABEL_SEPARATOR
from ..helpers.logging import get_logger
from ..types import ContainerSpec, MountSpec, PortBinding

logger = get_logger(__name__)


def container_name(inspect_data: Dict[str, Any]) -> str:
    """Container name without leading slash."""
    return (inspect_data.get("Name") or "").lstrip("/")


def spec_from_inspect(inspect_data: Dict[str, Any], name: Optional[str] = None) -> ContainerSpec:
    """
    Build a ContainerSpec from docker inspect data.

    Args:
        inspect_data: Dictionary containing Docker inspect output
        name: Override for the container name

    Returns:
        ContainerSpec with image, env, labels, ports and mounts
    """
    config = inspect_data.get("Config") or {}
    host_config = inspect_data.get("HostConfig") or {}

    ports = []
    for container_port, bindings in sorted((host_config.get("PortBindings") or {}).items()):
        for binding in bindings or []:
            ports.append(PortBinding(
                container_port=container_port,
                host_ip=binding.get("HostIp") or "",
                host_port=binding.get("HostPort") or "",
            ))

    mounts = []
    for mount in inspect_data.get("Mounts") or []:
        source = mount_source(mount)
        if source and mount.get("Destination"):
            mounts.append(MountSpec(
                source=source,
                destination=mount["Destination"],
                read_only=not mount.get("RW", True),
            ))

    return ContainerSpec(
        name=name or container_name(inspect_data),
        image=config.get("Image", ""),
        env=list(config.get("Env") or []),
        labels=dict(config.get("Labels") or {}),
        ports=ports,
        mounts=mounts,
    )


# ---- Mounts and volumes ----

def mount_source(mount: Dict[str, Any]) -> Optional[str]:
    """Named volumes are referenced by name, binds by host path."""
    mount_type = mount.get("Type", "bind")
    if mount_type == "volume":
        return mount.get("Name") or None
    if mount_type == "bind":
        return mount.get("Source") or None
    return None  # tmpfs, npipe, ...


def mount_volume_name(mount: Dict[str, Any]) -> Optional[str]:
    """Name a mount's data is archived under: volume name or last path component."""
    source = mount_source(mount)
    if not source:
        return None
    if mount.get("Type", "bind") == "volume":
        return source
    return Path(source).name or None


def archivable_mounts(inspect_data: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Mounts whose data can be archived, as (volume_name, source) pairs.

    Named volumes always qualify; bind mounts only when the host path is a
    directory (single-file binds such as sockets are skipped).
    """
    result = []
    for mount in inspect_data.get("Mounts") or []:
        name = mount_volume_name(mount)
        source = mount_source(mount)
        if not name or not source:
            continue
        if mount.get("Type", "bind") == "bind" and not Path(source).is_dir():
            continue
        result.append((name, source))
    return result


# ---- Rendering ----

def spans_lines(text: str) -> bool:
    """True if text would not survive a round trip through a one-line record."""
    return len(f"{text}x".splitlines()) > 1


def multiline_env(env: Iterable[str]) -> List[str]:
    """Env entries that only config.json can hold."""
    return [entry for entry in env if spans_lines(entry)]


def multiline_labels(labels: Dict[str, str]) -> Dict[str, str]:
    """Labels that only config.json can hold."""
    return {key: value for key, value in labels.items() if spans_lines(f"{key}{value}")}


def render_env(env: Iterable[str]) -> str:
    lines = []
    for entry in env:
        if spans_lines(entry):
            logger.warning(f"Env variable {entry.partition('=')[0]!r} spans several lines, "
                           f"left out of the text record")
            continue
        lines.append(f"{entry}\n")
    return "".join(lines)


def render_labels(labels: Dict[str, str]) -> str:
    lines = []
    for key, value in sorted(labels.items()):
        if spans_lines(f"{key}{value}"):
            logger.warning(f"Label {key!r} spans several lines, left out of the text record")
            continue
        lines.append(f"{key}{LABEL_SEPARATOR}{value}\n")
    return "".join(lines)


def render_ports(ports: Iterable[PortBinding]) -> str:
    return "".join(f"{p.container_port}{ARROW_SEPARATOR}{p.host_binding}\n" for p in ports)


def render_mounts(mounts: Iterable[MountSpec]) -> str:
    return "".join(
        f"{m.source}{ARROW_SEPARATOR}{m.destination}{':ro' if m.read_only else ''}\n"
        for m in mounts
    )


# ---- Parsing ----

def _lines(text: str) -> List[str]:
    return [line for line in text.splitlines() if line.strip()]


def parse_env(text: str) -> List[str]:
    return _lines(text)


def parse_labels(text: str) -> Dict[str, str]:
    labels = {}
    for line in _lines(text):
        key, sep, value = line.partition(LABEL_SEPARATOR)
        if not sep:
            raise ValueError(f"Malformed label line: {line!r}")
        labels[key] = value
    return labels


def parse_ports(text: str) -> List[PortBinding]:
    ports = []
    for line in _lines(text):
        container_port, sep, binding = line.partition(ARROW_SEPARATOR)
        if not sep:
            raise ValueError(f"Malformed port line: {line!r}")
        ports.append(PortBinding.parse_host_binding(container_port.strip(), binding.strip()))
    return ports


def parse_mounts(text: str) -> List[MountSpec]:
    mounts = []
    for line in _lines(text):
        source, sep, destination = line.partition(ARROW_SEPARATOR)
        if not sep:
            raise ValueError(f"Malformed volume line: {line!r}")
        read_only = destination.endswith(":ro")
        if read_only:
            destination = destination[:-len(":ro")]
        mounts.append(MountSpec(source.strip(), destination.strip(), read_only))
    return mounts
