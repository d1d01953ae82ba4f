"""pywin32 implementation of the SCM binding.

Registration goes through win32service directly (CreateService/DeleteService)
so failures raise instead of exiting the way HandleCommandLine does. Running
as a service uses a minimal ServiceFramework whose only job is to record the
SCM's stop request; the host program keeps doing its own work and polls
``is_stop_requested``.
"""

import logging
import sys
import threading

if sys.platform != "win32":
    raise ImportError(
        f"Windows service binding is only available on Windows, not {sys.platform}"
    )

import pywintypes
import servicemanager
import win32service
import win32serviceutil

from os_service.errors import NativeBindingError

logger = logging.getLogger(__name__)


def _binding_error(call: str, error: pywintypes.error) -> NativeBindingError:
    return NativeBindingError(call, error.strerror, winerror=error.winerror)


def _split_multi_string(value: str) -> list[str] | None:
    names = [name for name in value.split("\0") if name]
    return names or None


class Win32ServiceBinding:
    """ServiceBinding backed by win32service and servicemanager."""

    def __init__(self):
        self._stop_requested = threading.Event()
        self._stopped = threading.Event()
        self._service: win32serviceutil.ServiceFramework | None = None
        self._dispatcher: threading.Thread | None = None

    def add(
        self,
        name: str,
        display_name: str,
        command_line: str,
        username: str | None,
        password: str | None,
        dependencies: str,
    ) -> None:
        try:
            scm = win32service.OpenSCManager(
                None, None, win32service.SC_MANAGER_ALL_ACCESS
            )
            try:
                handle = win32service.CreateService(
                    scm,
                    name,
                    display_name,
                    win32service.SERVICE_ALL_ACCESS,
                    win32service.SERVICE_WIN32_OWN_PROCESS,
                    win32service.SERVICE_AUTO_START,
                    win32service.SERVICE_ERROR_NORMAL,
                    command_line,
                    None,  # load order group
                    False,  # fetch tag
                    _split_multi_string(dependencies),
                    username,
                    password,
                )
                win32service.CloseServiceHandle(handle)
            finally:
                win32service.CloseServiceHandle(scm)
        except pywintypes.error as e:
            raise _binding_error("add", e) from e

    def remove(self, name: str) -> None:
        try:
            scm = win32service.OpenSCManager(
                None, None, win32service.SC_MANAGER_ALL_ACCESS
            )
            try:
                handle = win32service.OpenService(
                    scm, name, win32service.SERVICE_ALL_ACCESS
                )
                try:
                    win32service.DeleteService(handle)
                finally:
                    win32service.CloseServiceHandle(handle)
            finally:
                win32service.CloseServiceHandle(scm)
        except pywintypes.error as e:
            raise _binding_error("remove", e) from e

    def run(self) -> None:
        """Start the SCM dispatcher on a background thread.

        Returns immediately; the dispatcher thread lives until the service
        reports itself stopped.
        """
        if self._dispatcher is not None:
            return

        servicemanager.Initialize()
        servicemanager.PrepareToHostSingle(self._service_class())
        self._dispatcher = threading.Thread(
            target=self._dispatch, name="scm-dispatcher", daemon=True
        )
        self._dispatcher.start()

    def stop(self, exit_code: int) -> None:
        try:
            if self._service is not None:
                self._service.ReportServiceStatus(
                    win32service.SERVICE_STOPPED, win32ExitCode=exit_code
                )
        except pywintypes.error as e:
            raise _binding_error("stop", e) from e
        finally:
            self._stopped.set()

    def is_stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def _dispatch(self) -> None:
        try:
            servicemanager.StartServiceCtrlDispatcher()
        except pywintypes.error as e:
            # 1063: not started by the SCM (e.g. run from a console)
            logger.warning("SCM dispatcher did not start: %s", e.strerror)

    def _service_class(self) -> type[win32serviceutil.ServiceFramework]:
        binding = self

        class HostedService(win32serviceutil.ServiceFramework):
            _svc_name_ = "os-service"
            _svc_display_name_ = "os-service"

            def __init__(self, args):
                win32serviceutil.ServiceFramework.__init__(self, args)
                binding._service = self

            def SvcStop(self):
                self.ReportServiceStatus(win32service.SERVICE_STOP_PENDING)
                binding._stop_requested.set()

            def SvcDoRun(self):
                self.ReportServiceStatus(win32service.SERVICE_RUNNING)
                binding._stopped.wait()

        return HostedService
