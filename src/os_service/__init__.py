"""Run a program as a native OS service.

Registers, starts, stops and removes services through the host's service
manager:
- systemd units or SysV init scripts on Linux
- launchd user agents on macOS
- the Service Control Manager on Windows

Example:
    import os_service

    await os_service.add("demo", {"args": ["worker.py", "--run"]})
    await os_service.enable("demo")

    # inside the service process
    os_service.run(lambda: os_service.stop(0))
"""

from collections.abc import Callable, Mapping
from typing import Any, NoReturn

from os_service.config.models import ServiceDescriptor, ServiceOptions
from os_service.context import OrchestratorContext
from os_service.errors import (
    ArtifactError,
    ArtifactRemoveError,
    ArtifactWriteError,
    ControlPlaneError,
    DescriptorError,
    NativeBindingError,
    OSServiceError,
    ProbeError,
    ToolNotFoundError,
)
from os_service.manager import ServiceManager
from os_service.strategy import Strategy, select_strategy

_manager: ServiceManager | None = None


def get_manager() -> ServiceManager:
    """Get the process-wide ServiceManager, creating it on first use."""
    global _manager
    if _manager is None:
        _manager = ServiceManager()
    return _manager


async def add(
    name: str, options: ServiceOptions | Mapping[str, Any] | None = None
) -> Strategy:
    """Register a service. See ServiceManager.add."""
    return await get_manager().add(name, options)


async def remove(name: str) -> Strategy:
    """Unregister a service. See ServiceManager.remove."""
    return await get_manager().remove(name)


async def enable(name: str) -> Strategy:
    """Start a registered service. See ServiceManager.enable."""
    return await get_manager().enable(name)


async def disable(name: str) -> Strategy:
    """Stop a running service. See ServiceManager.disable."""
    return await get_manager().disable(name)


def run(on_stop: Callable[[], object]) -> None:
    """Call on_stop when this service is asked to stop. See ServiceManager.run."""
    get_manager().run(on_stop)


def stop(code: int = 0) -> NoReturn:
    """Terminate this service process. See ServiceManager.stop."""
    get_manager().stop(code)


__all__ = [
    "ArtifactError",
    "ArtifactRemoveError",
    "ArtifactWriteError",
    "ControlPlaneError",
    "DescriptorError",
    "NativeBindingError",
    "OSServiceError",
    "OrchestratorContext",
    "ProbeError",
    "ServiceDescriptor",
    "ServiceManager",
    "ServiceOptions",
    "Strategy",
    "ToolNotFoundError",
    "add",
    "disable",
    "enable",
    "get_manager",
    "remove",
    "run",
    "select_strategy",
    "stop",
]
