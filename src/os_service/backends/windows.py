"""Windows Service Control Manager backend."""

import asyncio
import logging

from os_service.backends.base import ServiceBackend
from os_service.config.models import ServiceDescriptor
from os_service.errors import NativeBindingError
from os_service.strategy import Strategy
from os_service.templates import render_scm_registration

logger = logging.getLogger(__name__)

ERROR_SERVICE_DOES_NOT_EXIST = 1060


class WindowsBackend(ServiceBackend):
    """SCM backend.

    Registration goes through the native binding; start and stop use
    ``net start`` / ``net stop``. There is no file artifact.
    """

    strategy = Strategy.WINDOWS_SCM

    async def add(self, descriptor: ServiceDescriptor) -> None:
        """Register the service with the SCM. It is not started until ``enable``."""
        registration = render_scm_registration(descriptor)
        await asyncio.to_thread(
            self.context.binding.add,
            registration.name,
            registration.display_name,
            registration.command_line,
            registration.username,
            registration.password,
            registration.dependencies,
        )

    async def remove(self, name: str) -> None:
        """Delete the SCM registration."""
        try:
            await asyncio.to_thread(self.context.binding.remove, name)
        except NativeBindingError as e:
            if e.winerror != ERROR_SERVICE_DOES_NOT_EXIST:
                raise
            logger.warning("Service %s is not registered", name)

    async def enable(self, name: str) -> None:
        """Start the service.

        A process that registered itself stops polling for its own stop
        request here, since the SCM now owns the started instance.
        """
        self.context.cancel_stop_poller()
        await self._invoke("net", "start", name)

    async def disable(self, name: str) -> None:
        """Stop the service."""
        self.context.cancel_stop_poller()
        await self._invoke("net", "stop", name)
