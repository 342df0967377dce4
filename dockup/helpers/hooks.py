"""
Failure hook execution.

An optional executable configured via ``failure_hook`` (or
DOCKUP_FAILURE_HOOK) is called as ``<hook> <line_number> <exit_code>``
whenever a single-item command fails.
"""

import os
import subprocess
import traceback
from pathlib import Path
from typing import Optional

from .logging import get_logger

logger = get_logger(__name__)

HOOK_TIMEOUT = 60


def failure_line(error: BaseException) -> int:
    """Line number where an exception was raised, 0 if unknown."""
    frames = traceback.extract_tb(error.__traceback__)
    return frames[-1].lineno if frames else 0


def run_failure_hook(hook: Optional[Path], line_number: int, exit_code: int,
                     command: str = "") -> bool:
    """
    Run the failure hook, if configured.

    Args:
        hook: Path of the hook executable
        line_number: Line where the failure originated
        exit_code: Exit code of the failed operation
        command: dockup command name, exported as DOCKUP_COMMAND

    Returns:
        True if the hook ran and exited zero
    """
    if hook is None:
        return False
    if not hook.is_file() or not os.access(hook, os.X_OK):
        logger.warning(f"Failure hook not executable: {hook}")
        return False

    env = dict(os.environ, DOCKUP_COMMAND=command)
    try:
        result = subprocess.run(
            [str(hook), str(line_number), str(exit_code)],
            capture_output=True,
            text=True,
            timeout=HOOK_TIMEOUT,
            env=env,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Failure hook {hook} could not run: {e}")
        return False

    if result.returncode != 0:
        logger.warning(f"Failure hook {hook} exited {result.returncode}: {result.stderr.strip()}")
        return False
    logger.debug(f"Failure hook {hook} executed")
    return True
