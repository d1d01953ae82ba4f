"""Service manager detection.

Maps the host operating system to exactly one service-management strategy.
On Linux the systemd unit directory is probed on every call, so a host whose
init system changes mid-session is picked up by the next operation.
"""

import logging
import sys
from enum import Enum

import aiofiles.os

from os_service.config.paths import get_systemd_unit_dir
from os_service.errors import ProbeError

logger = logging.getLogger(__name__)


class Strategy(Enum):
    """Service manager targeted by an operation."""

    WINDOWS_SCM = "windows-scm"
    MACOS_LAUNCHD = "macos-launchd"
    LINUX_SYSTEMD = "linux-systemd"
    LINUX_SYSV = "linux-sysv"

    @property
    def writes_artifact(self) -> bool:
        """Whether the strategy registers services through a file on disk."""
        return self is not Strategy.WINDOWS_SCM


WINDOWS_PLATFORMS = ("win32", "cygwin")


async def has_systemd() -> bool:
    """Check whether the systemd unit directory exists.

    Raises:
        ProbeError: If the directory cannot be checked (e.g. permission denied).
    """
    unit_dir = get_systemd_unit_dir()
    try:
        await aiofiles.os.stat(unit_dir)
    except FileNotFoundError:
        logger.debug("No systemd unit directory at %s", unit_dir)
        return False
    except OSError as e:
        raise ProbeError(unit_dir, e.strerror or str(e)) from e
    logger.debug("Found systemd unit directory at %s", unit_dir)
    return True


async def select_strategy(platform_id: str | None = None) -> Strategy:
    """Select the strategy for the host.

    Args:
        platform_id: ``sys.platform``-style identifier, or None for this host.

    Returns:
        The Strategy for this host.

    Raises:
        ProbeError: If the systemd probe fails for a reason other than not-found.
    """
    platform_id = platform_id or sys.platform

    if platform_id in WINDOWS_PLATFORMS:
        return Strategy.WINDOWS_SCM
    if platform_id == "darwin":
        return Strategy.MACOS_LAUNCHD
    if await has_systemd():
        return Strategy.LINUX_SYSTEMD
    return Strategy.LINUX_SYSV


def parse_strategy(value: str) -> Strategy:
    """Parse a strategy name such as "linux-systemd".

    Raises:
        ValueError: If the name is not a known strategy.
    """
    try:
        return Strategy(value)
    except ValueError:
        available = [s.value for s in Strategy]
        raise ValueError(f"Unknown strategy: {value}. Available: {available}") from None
