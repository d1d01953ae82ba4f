"""System V init script backend for Linux hosts without systemd."""

from os_service.backends.base import ServiceBackend, remove_linux_artifacts
from os_service.config.models import ServiceDescriptor
from os_service.control import ControlCommand, invoke_chain, service_unknown
from os_service.strategy import Strategy


class SysVBackend(ServiceBackend):
    """SysV init backend.

    Init script stored in /etc/init.d/<name>. Registration uses chkconfig
    (Red Hat family), falling back to update-rc.d (Debian family) when
    chkconfig is not installed.
    """

    strategy = Strategy.LINUX_SYSV

    async def add(self, descriptor: ServiceDescriptor) -> None:
        """Write the init script and register it for the default run levels."""
        await self._write(descriptor)
        await invoke_chain(
            ControlCommand(
                "chkconfig", ("--add", descriptor.name), fallback_on_absent=True
            ),
            ControlCommand("update-rc.d", (descriptor.name, "defaults")),
            runner=self.context.runner,
        )

    async def remove(self, name: str) -> None:
        """Unregister the init script and delete it."""
        await invoke_chain(
            ControlCommand(
                "chkconfig",
                ("--del", name),
                fallback_on_absent=True,
                tolerate=service_unknown,
            ),
            ControlCommand("update-rc.d", (name, "remove")),
            runner=self.context.runner,
        )
        await remove_linux_artifacts(name)

    async def enable(self, name: str) -> None:
        await self._invoke("service", name, "start")

    async def disable(self, name: str) -> None:
        await self._invoke("service", name, "stop")
