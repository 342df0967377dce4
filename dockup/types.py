################################################################################
# DOCKUP
#
# @file:        types.py
# @module:      dockup.types
# @description: Shared data models for container specs, snapshots and batches.
# @repository:  https://github.com/dockup/dockup
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT License: see LICENSE or https://opensource.org/licenses/MIT
# ==============================================================================
# Notes:
# - ContainerSpec is the typed replacement for shell flag lists
# - SnapshotResult reports partial snapshots explicitly
# - BatchSummary collects succeeded/skipped names for backup-all
################################################################################

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


# ---- Container definition ----

# Single port or range, as docker records it ("8080", "8000-8010")
HOST_PORT_PATTERN = re.compile(r"^\d+(-\d+)?$")


@dataclass(frozen=True)
class PortBinding:
    container_port: str  # e.g. "80/tcp"
    host_ip: str = ""
    host_port: str = ""  # kept as text so ranges survive

    @property
    def host_binding(self) -> str:
        if self.host_ip:
            return f"{self.host_ip}:{self.host_port}"
        return self.host_port

    @classmethod
    def parse_host_binding(cls, container_port: str, binding: str) -> PortBinding:
        """
        Parse "ip:port", "port" or "" back into a binding.

        Raises:
            ValueError: If the host port is neither a port nor a range
        """
        host_ip, sep, host_port = binding.rpartition(":")
        if not sep:
            host_ip, host_port = "", binding
        if host_port and not HOST_PORT_PATTERN.match(host_port):
            raise ValueError(f"Invalid host port for {container_port}: {host_port!r}")
        return cls(container_port, host_ip, host_port)


@dataclass(frozen=True)
class MountSpec:
    source: str  # volume name or absolute host path
    destination: str
    read_only: bool = False


@dataclass
class ContainerSpec:
    """Everything needed to recreate a container."""
    name: str
    image: str
    env: List[str] = field(default_factory=list)  # KEY=VALUE, original order
    labels: Dict[str, str] = field(default_factory=dict)
    ports: List[PortBinding] = field(default_factory=list)
    mounts: List[MountSpec] = field(default_factory=list)

    def to_create_kwargs(self) -> Dict[str, Any]:
        """
        Serialize to keyword arguments for docker's containers.create().

        Output is deterministic: env keeps its order, everything else is
        sorted.
        """
        ports: Dict[str, List[Any]] = {}
        for binding in sorted(self.ports, key=lambda p: (p.container_port, p.host_ip, p.host_port)):
            if binding.host_ip:
                target: Any = (binding.host_ip, binding.host_port) if binding.host_port else (binding.host_ip,)
            elif binding.host_port:
                target = binding.host_port
            else:
                target = None
            ports.setdefault(binding.container_port, []).append(target)

        volumes = [
            f"{m.source}:{m.destination}:{'ro' if m.read_only else 'rw'}"
            for m in sorted(self.mounts, key=lambda m: (m.destination, m.source))
        ]

        return {
            "image": self.image,
            "name": self.name,
            "environment": list(self.env),
            "labels": dict(sorted(self.labels.items())),
            "ports": {k: (v[0] if len(v) == 1 else v) for k, v in ports.items()},
            "volumes": volumes,
        }


# ---- Results ----

SNAPSHOT_OK = "ok"
SNAPSHOT_PARTIAL = "partial"
SNAPSHOT_SKIPPED = "skipped"


@dataclass
class SnapshotResult:
    container_name: str
    status: str
    slot_path: Optional[Path] = None
    volumes_archived: List[str] = field(default_factory=list)
    volumes_failed: Dict[str, str] = field(default_factory=dict)  # name -> error
    volumes_skipped: List[str] = field(default_factory=list)
    synced: bool = False

    @property
    def partial(self) -> bool:
        return self.status == SNAPSHOT_PARTIAL

    @property
    def skipped(self) -> bool:
        return self.status == SNAPSHOT_SKIPPED

    def to_manifest(self) -> Dict[str, Any]:
        return {
            "container": self.container_name,
            "status": self.status,
            "partial": self.partial,
            "volumes_archived": self.volumes_archived,
            "volumes_failed": self.volumes_failed,
            "volumes_skipped": self.volumes_skipped,
        }


@dataclass
class BatchSummary:
    bucket_kind: str
    succeeded: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)  # (name, reason)
    partial: List[str] = field(default_factory=list)
    slots: Dict[str, Path] = field(default_factory=dict)
    synced: List[str] = field(default_factory=list)

    @property
    def skipped_names(self) -> List[str]:
        return [name for name, _ in self.skipped]

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.skipped)
