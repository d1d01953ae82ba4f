"""Service backend factory."""

from typing import assert_never

from os_service.backends.base import ServiceBackend
from os_service.context import OrchestratorContext
from os_service.strategy import Strategy


def get_backend(strategy: Strategy, context: OrchestratorContext) -> ServiceBackend:
    """Get the backend that implements a strategy.

    Backends are imported on demand to avoid loading unnecessary modules.
    """
    match strategy:
        case Strategy.LINUX_SYSTEMD:
            from os_service.backends.systemd import SystemdBackend

            return SystemdBackend(context)
        case Strategy.LINUX_SYSV:
            from os_service.backends.sysv import SysVBackend

            return SysVBackend(context)
        case Strategy.MACOS_LAUNCHD:
            from os_service.backends.launchd import LaunchdBackend

            return LaunchdBackend(context)
        case Strategy.WINDOWS_SCM:
            from os_service.backends.windows import WindowsBackend

            return WindowsBackend(context)
        case _:
            assert_never(strategy)


__all__ = ["ServiceBackend", "get_backend"]
