"""Abstract base for service manager backends."""

from abc import ABC, abstractmethod

from os_service.artifacts import remove_artifact, write_artifact
from os_service.config.models import ServiceDescriptor
from os_service.config.paths import get_init_script_path, get_unit_path
from os_service.context import OrchestratorContext
from os_service.control import ControlCommand, Outcome, invoke
from os_service.strategy import Strategy
from os_service.templates import render_artifact


class ServiceBackend(ABC):
    """Abstract interface for one service manager.

    Backends handle OS-specific registration and control:
    - systemd units and SysV init scripts on Linux
    - launchd agents on macOS
    - the Service Control Manager on Windows
    """

    strategy: Strategy

    def __init__(self, context: OrchestratorContext):
        self.context = context

    @abstractmethod
    async def add(self, descriptor: ServiceDescriptor) -> None:
        """Register a service, overwriting any previous registration."""
        ...

    @abstractmethod
    async def remove(self, name: str) -> None:
        """Unregister a service. A service that is already gone is not an error."""
        ...

    @abstractmethod
    async def enable(self, name: str) -> None:
        """Start a registered service."""
        ...

    @abstractmethod
    async def disable(self, name: str) -> None:
        """Stop a running service."""
        ...

    async def _write(self, descriptor: ServiceDescriptor) -> None:
        artifact = render_artifact(self.strategy, descriptor)
        if artifact is not None:
            await write_artifact(artifact)

    async def _invoke(self, program: str, *args: str, **kwargs) -> Outcome:
        command = ControlCommand(program, args, **kwargs)
        return await invoke(command, self.context.runner)


async def remove_linux_artifacts(name: str) -> None:
    """Delete both the init script and the unit file, whichever exist."""
    for path in (get_init_script_path(name), get_unit_path(name)):
        await remove_artifact(path)
