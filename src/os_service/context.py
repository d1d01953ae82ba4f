"""Per-process orchestration state."""

import asyncio
import logging
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from os_service.control import Runner, run_command
from os_service.native import ServiceBinding, load_native_binding

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class StopPoller:
    """Background thread that watches the SCM stop flag.

    Calls ``on_stop`` once the binding reports a stop request, then exits.
    When created inside a running event loop, the callback is delivered on
    that loop; otherwise it runs on the polling thread.
    """

    def __init__(
        self,
        binding: ServiceBinding,
        on_stop: Callable[[], object],
        interval: float = DEFAULT_POLL_INTERVAL,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._binding = binding
        self._on_stop = on_stop
        self._interval = interval
        self._loop = loop
        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._poll, name="scm-stop-poller", daemon=True
        )

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._cancelled.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def _poll(self) -> None:
        while not self._cancelled.wait(self._interval):
            try:
                requested = self._binding.is_stop_requested()
            except Exception:
                logger.exception("Checking for an SCM stop request failed")
                continue
            if requested and not self._cancelled.is_set():
                logger.info("Stop requested by service manager")
                self._deliver()
                return

    def _deliver(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._on_stop)
        else:
            self._on_stop()


@dataclass
class OrchestratorContext:
    """State shared by lifecycle operations within one process.

    Attributes:
        platform_id: ``sys.platform``-style host identifier, read once.
        runner: Coroutine function used to run external tools.
        binding_loader: Loads the SCM binding on first use.
        poll_interval: Seconds between SCM stop-flag checks.
        run_initialised: Set by the first ``run`` call, never cleared.
        stop_poller: Created by ``run`` on Windows, cancelled by
            ``enable``/``disable``.
    """

    platform_id: str = field(default_factory=lambda: sys.platform)
    runner: Runner = run_command
    binding_loader: Callable[[], ServiceBinding] = load_native_binding
    poll_interval: float = DEFAULT_POLL_INTERVAL
    run_initialised: bool = False
    stop_poller: StopPoller | None = None
    _binding: ServiceBinding | None = field(default=None, repr=False)

    @property
    def binding(self) -> ServiceBinding:
        """The SCM binding, loaded once per context."""
        if self._binding is None:
            self._binding = self.binding_loader()
        return self._binding

    def cancel_stop_poller(self) -> None:
        """Stop watching for SCM stop requests, if a poller is running."""
        if self.stop_poller is not None:
            self.stop_poller.cancel()
            logger.debug("Cancelled stop poller")
