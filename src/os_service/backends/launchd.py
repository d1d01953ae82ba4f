"""Launchd user agent backend for macOS."""

from os_service.artifacts import remove_artifact
from os_service.backends.base import ServiceBackend
from os_service.config.models import ServiceDescriptor
from os_service.config.paths import get_plist_path
from os_service.strategy import Strategy


class LaunchdBackend(ServiceBackend):
    """Launchd user agent backend.

    Uses launchctl for service control.
    Plist file stored in ~/Library/LaunchAgents/<name>.plist
    """

    strategy = Strategy.MACOS_LAUNCHD

    async def add(self, descriptor: ServiceDescriptor) -> None:
        """Write the plist. The agent is not loaded until ``enable``."""
        await self._write(descriptor)

    async def remove(self, name: str) -> None:
        """Delete the plist without unloading the agent."""
        await remove_artifact(get_plist_path(name))

    async def enable(self, name: str) -> None:
        """Load the agent, which starts it (RunAtLoad)."""
        await self._invoke("launchctl", "load", str(get_plist_path(name)))

    async def disable(self, name: str) -> None:
        """Unload the agent."""
        await self._invoke("launchctl", "unload", str(get_plist_path(name)))
