"""Windows Service Control Manager binding.

The orchestrator only depends on the ServiceBinding protocol; the pywin32
implementation is imported on first use, so nothing Windows-specific is
loaded on other platforms.
"""

from typing import Protocol

from os_service.errors import NativeBindingError


class ServiceBinding(Protocol):
    """Capabilities the orchestrator needs from the SCM."""

    def add(
        self,
        name: str,
        display_name: str,
        command_line: str,
        username: str | None,
        password: str | None,
        dependencies: str,
    ) -> None:
        """Register a service. ``dependencies`` is a NUL-joined multi-string."""
        ...

    def remove(self, name: str) -> None:
        """Delete a service registration."""
        ...

    def run(self) -> None:
        """Hand this process to the SCM dispatcher."""
        ...

    def stop(self, exit_code: int) -> None:
        """Report this service as stopped with exit_code."""
        ...

    def is_stop_requested(self) -> bool:
        """Whether the SCM has asked this service to stop."""
        ...


def load_native_binding() -> ServiceBinding:
    """Load the pywin32-backed binding.

    Raises:
        NativeBindingError: If pywin32 is not available.
    """
    try:
        from os_service.native.win32 import Win32ServiceBinding
    except ImportError as e:
        raise NativeBindingError(
            "load", f"pywin32 is required for Windows services ({e})"
        ) from e

    return Win32ServiceBinding()


__all__ = ["ServiceBinding", "load_native_binding"]
