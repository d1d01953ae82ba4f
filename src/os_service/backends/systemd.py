"""systemd system service backend for Linux."""

from os_service.backends.base import ServiceBackend, remove_linux_artifacts
from os_service.config.models import ServiceDescriptor
from os_service.control import service_unknown
from os_service.strategy import Strategy


class SystemdBackend(ServiceBackend):
    """systemd backend.

    Unit file stored in /usr/lib/systemd/system/<name>.service.
    Adding a service also enables it for boot.
    """

    strategy = Strategy.LINUX_SYSTEMD

    async def add(self, descriptor: ServiceDescriptor) -> None:
        """Write the unit file and enable it."""
        await self._write(descriptor)
        await self._invoke("systemctl", "enable", descriptor.name)

    async def remove(self, name: str) -> None:
        """Disable the unit and delete its file."""
        await self._invoke("systemctl", "disable", name, tolerate=service_unknown)
        await remove_linux_artifacts(name)

    async def enable(self, name: str) -> None:
        """Start the unit."""
        await self._invoke("systemctl", "start", name)

    async def disable(self, name: str) -> None:
        """Stop the unit. A unit systemd does not know is already stopped."""
        await self._invoke("systemctl", "stop", name, tolerate=service_unknown)
