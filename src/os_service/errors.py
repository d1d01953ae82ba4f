"""Error types raised by os-service operations."""

from pathlib import Path


class OSServiceError(Exception):
    """Base class for all os-service errors."""

    pass


class DescriptorError(OSServiceError):
    """Invalid service descriptor or service definition file."""

    pass


class ProbeError(OSServiceError):
    """Probing the host init system failed for a reason other than not-found."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Failed to probe {path}: {reason}")


class ArtifactError(OSServiceError):
    """Base class for service artifact failures."""

    action = "Accessing"

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"{self.action} {path} failed: {reason}")


class ArtifactWriteError(ArtifactError):
    """Writing a service artifact (or creating its parent directory) failed."""

    action = "Writing"


class ArtifactRemoveError(ArtifactError):
    """Deleting a service artifact failed for a reason other than not-found."""

    action = "Removing"


class ControlPlaneError(OSServiceError):
    """An external service-control tool failed.

    Attributes:
        program: Name of the tool that failed (e.g. "systemctl").
        returncode: Exit status, or None if the tool never ran.
        stderr: Captured standard error, stripped.
    """

    def __init__(
        self,
        program: str,
        returncode: int | None = None,
        stderr: str = "",
        message: str | None = None,
    ):
        self.program = program
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            message = f"{program} failed: exit status {returncode}"
            if stderr:
                message += f": {stderr}"
        super().__init__(message)


class ToolNotFoundError(ControlPlaneError):
    """An external service-control tool is not installed."""

    def __init__(self, program: str):
        super().__init__(program, message=f"{program} failed: command not found")


class NativeBindingError(OSServiceError):
    """A call into the Windows Service Control Manager failed.

    Attributes:
        call: Binding call that failed (e.g. "add").
        winerror: Windows error code, when known.
    """

    def __init__(self, call: str, reason: str, winerror: int | None = None):
        self.call = call
        self.winerror = winerror
        super().__init__(f"SCM {call} failed: {reason}")
