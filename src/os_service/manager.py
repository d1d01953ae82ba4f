"""Service lifecycle orchestration.

ServiceManager sequences strategy selection, rendering, artifact writes and
control commands for each public operation. The strategy is selected afresh
by every ``add``/``remove``/``enable``/``disable`` call and stays fixed for
the duration of that call.

Expected call pattern, on every platform:

    manager = ServiceManager()
    await manager.add("demo", {"args": ["--run"]})
    await manager.enable("demo")

On Linux ``add`` already enables the service for boot; on Windows and macOS
it only registers it, so ``enable`` is what starts it.
"""

import asyncio
import logging
import os
import signal
import threading
from collections.abc import Callable, Mapping
from typing import Any, NoReturn

from os_service.backends import ServiceBackend, get_backend
from os_service.config.models import ServiceDescriptor, ServiceOptions
from os_service.context import OrchestratorContext, StopPoller
from os_service.errors import OSServiceError
from os_service.strategy import WINDOWS_PLATFORMS, Strategy, select_strategy

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_once(
    sig: signal.Signals,
    callback: Callable[[], object],
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Handle the next delivery of sig with callback, then stop handling it.

    Inside a running event loop the handler is registered on the loop, so the
    loop wakes up to run whatever the callback schedules. Otherwise the
    previous handler is restored when the signal arrives.
    """
    if loop is not None:

        def loop_handler() -> None:
            loop.remove_signal_handler(sig)
            logger.info("Received %s", sig.name)
            callback()

        loop.add_signal_handler(sig, loop_handler)
        return

    previous = signal.getsignal(sig)

    def handler(signum, frame):
        signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        logger.info("Received %s", signal.Signals(signum).name)
        callback()

    signal.signal(sig, handler)


class ServiceManager:
    """Public lifecycle operations for OS services.

    Example:
        manager = ServiceManager()
        await manager.add("demo", {"command": "/usr/bin/demo"})
        await manager.enable("demo")
    """

    def __init__(self, context: OrchestratorContext | None = None):
        """Initialize the service manager.

        Args:
            context: Orchestration state, or None for a fresh one bound to
                this host.
        """
        self.context = context or OrchestratorContext()

    @property
    def is_windows(self) -> bool:
        return self.context.platform_id in WINDOWS_PLATFORMS

    async def strategy(self) -> Strategy:
        """Select the strategy for the host."""
        return await select_strategy(self.context.platform_id)

    async def _backend(self) -> ServiceBackend:
        strategy = await self.strategy()
        return get_backend(strategy, self.context)

    async def add(
        self,
        name: str,
        options: ServiceOptions | Mapping[str, Any] | None = None,
    ) -> Strategy:
        """Register a service.

        Args:
            name: Service name, used verbatim in paths and OS-level names.
            options: Command, arguments and platform options.

        Returns:
            The strategy the service was registered with.

        Raises:
            DescriptorError: If the name or options are invalid.
            ArtifactWriteError: If the service definition cannot be written.
            ControlPlaneError: If registering with the service manager fails.
                The written artifact is left in place.
            NativeBindingError: If the SCM rejects the registration.
        """
        descriptor = ServiceDescriptor.from_options(name, options)
        return await self.add_descriptor(descriptor)

    async def add_descriptor(self, descriptor: ServiceDescriptor) -> Strategy:
        """Register a service from a prepared descriptor."""
        backend = await self._backend()
        logger.info("Adding service %s (%s)", descriptor.name, backend.strategy.value)
        await backend.add(descriptor)
        return backend.strategy

    async def remove(self, name: str) -> Strategy:
        """Unregister a service and delete its definition.

        Removing a service that is not registered succeeds.
        """
        backend = await self._backend()
        logger.info("Removing service %s (%s)", name, backend.strategy.value)
        await backend.remove(name)
        return backend.strategy

    async def enable(self, name: str) -> Strategy:
        """Start a registered service."""
        backend = await self._backend()
        logger.info("Starting service %s (%s)", name, backend.strategy.value)
        await backend.enable(name)
        return backend.strategy

    async def disable(self, name: str) -> Strategy:
        """Stop a running service."""
        backend = await self._backend()
        logger.info("Stopping service %s (%s)", name, backend.strategy.value)
        await backend.disable(name)
        return backend.strategy

    def run(self, on_stop: Callable[[], object]) -> None:
        """Arrange for on_stop to be called when this service is asked to stop.

        Returns immediately; the caller keeps running its own work. On POSIX
        the next SIGINT or SIGTERM calls on_stop. On Windows a background
        thread polls the SCM stop flag every ``poll_interval`` seconds, and
        the process is handed to the SCM dispatcher.

        Only the first call registers on_stop; later calls do not add more
        handlers.
        """
        context = self.context

        if not context.run_initialised:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

            if self.is_windows:
                poller = StopPoller(
                    context.binding, on_stop, context.poll_interval, loop
                )
                poller.start()
                context.stop_poller = poller
            else:
                for sig in STOP_SIGNALS:
                    _install_once(sig, on_stop, loop)
            context.run_initialised = True
            logger.debug("Stop handling installed")

        if self.is_windows:
            context.binding.run()

    def stop(self, code: int = 0) -> NoReturn:
        """Terminate this service process with an exit code.

        On Windows the SCM is told the service stopped with code first. A
        failed report is logged; the process exits either way.
        """
        if self.is_windows:
            try:
                self.context.binding.stop(code)
            except OSServiceError:
                logger.exception("Could not report stop to the service manager")

        logger.info("Exiting with code %d", code)
        for handler in logging.getLogger().handlers:
            handler.flush()

        if threading.current_thread() is threading.main_thread():
            raise SystemExit(code)
        # SystemExit would only end this thread
        os._exit(code)
