"""Blacklist filter for containers and volumes."""

from typing import FrozenSet, Iterable

from ..helpers.errors import BlacklistedError
from ..helpers.logging import get_logger

logger = get_logger(__name__)


class Blacklist:
    """
    Immutable set of names excluded from backup and restore.

    Matching is exact: no globbing, no case folding.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: FrozenSet[str] = frozenset(names)

    def __contains__(self, name: str) -> bool:
        return self.is_blacklisted(name)

    def __len__(self) -> int:
        return len(self._names)

    def is_blacklisted(self, name: str) -> bool:
        return name in self._names

    def check(self, name: str, kind: str = "container") -> None:
        """
        Raise BlacklistedError (and warn) if name is blacklisted.

        Args:
            name: Container or volume name
            kind: Used in the log message only
        """
        if self.is_blacklisted(name):
            logger.warning(f"{kind.capitalize()} {name} is blacklisted, skipping",
                           extra={kind: name})
            raise BlacklistedError(name)
