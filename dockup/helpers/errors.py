"""
Exception hierarchy for dockup.

Single-item operations raise these; the batch loop converts them into
skip entries and the CLI turns them into a non-zero exit status.
"""

from typing import Optional


class DockupError(Exception):
    """Base class for all dockup errors"""
    pass


class ConfigError(DockupError):
    """Configuration-related errors"""
    pass


class NotFoundError(DockupError):
    """A volume, container, image, archive or snapshot does not exist"""
    pass


class ConfigInvalidError(NotFoundError):
    """A snapshot has no usable configuration record"""
    pass


class BlacklistedError(DockupError):
    """
    The target is on the blacklist.

    Not a failure: callers report it as a skip.
    """

    def __init__(self, name: str):
        super().__init__(f"{name} is blacklisted, skipping")
        self.name = name


class RuntimeFailure(DockupError):
    """
    An external process or runtime call failed.

    Attributes:
        exit_code: Exit or HTTP status code reported by the runtime
        stderr: Error output, passed through verbatim
    """

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        details = message
        if exit_code is not None:
            details += f" (exit code {exit_code})"
        if stderr:
            details += f": {stderr.strip()}"
        super().__init__(details)
        self.exit_code = exit_code
        self.stderr = stderr
