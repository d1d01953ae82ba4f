"""Shared test fixtures and fakes."""

import signal
from pathlib import Path

import pytest

from os_service.config.paths import ENV_VAR
from os_service.context import OrchestratorContext
from os_service.control import CommandResult
from os_service.errors import NativeBindingError
from os_service.manager import ServiceManager

# =============================================================================
# Fakes
# =============================================================================


class RecordingRunner:
    """Command runner that records invocations instead of spawning them.

    Every command succeeds unless configured otherwise with ``fail`` or
    ``missing``.
    """

    def __init__(self):
        self.calls: list[tuple[str, ...]] = []
        self._results: dict[tuple[str, ...], CommandResult] = {}
        self._missing: set[str] = set()

    def fail(self, *command: str, returncode: int = 1, stderr: str = "") -> None:
        """Make an exact command exit non-zero."""
        self._results[command] = CommandResult(returncode=returncode, stderr=stderr)

    def missing(self, program: str) -> None:
        """Make a program behave as not installed."""
        self._missing.add(program)

    async def __call__(self, program: str, args: tuple[str, ...]) -> CommandResult:
        command = (program, *args)
        self.calls.append(command)
        if program in self._missing:
            raise FileNotFoundError(2, "No such file or directory", program)
        return self._results.get(command, CommandResult(returncode=0))


class FakeBinding:
    """In-memory stand-in for the Windows SCM binding."""

    def __init__(self):
        self.services: dict[str, dict] = {}
        self.run_calls = 0
        self.stop_codes: list[int] = []
        self.stop_requested = False
        self.fail_add: NativeBindingError | None = None

    def add(self, name, display_name, command_line, username, password, dependencies):
        if self.fail_add is not None:
            raise self.fail_add
        self.services[name] = {
            "display_name": display_name,
            "command_line": command_line,
            "username": username,
            "password": password,
            "dependencies": dependencies,
        }

    def remove(self, name):
        if name not in self.services:
            raise NativeBindingError(
                "remove", "The specified service does not exist", winerror=1060
            )
        del self.services[name]

    def run(self):
        self.run_calls += 1

    def stop(self, exit_code):
        self.stop_codes.append(exit_code)

    def is_stop_requested(self):
        return self.stop_requested


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def system_root(tmp_path: Path, monkeypatch) -> Path:
    """Re-root /etc and /usr under a temporary directory."""
    root = tmp_path / "root"
    root.mkdir()
    monkeypatch.setenv(ENV_VAR, str(root))
    return root.resolve()


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """Point the home directory at a temporary directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def systemd_root(system_root: Path) -> Path:
    """A system root that has the systemd unit directory."""
    (system_root / "usr" / "lib" / "systemd" / "system").mkdir(parents=True)
    return system_root


# =============================================================================
# Orchestration Fixtures
# =============================================================================


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def binding() -> FakeBinding:
    return FakeBinding()


@pytest.fixture
def make_manager(runner: RecordingRunner, binding: FakeBinding):
    """Factory for a ServiceManager on a given platform with fake collaborators."""

    def factory(platform_id: str, **kwargs) -> ServiceManager:
        context = OrchestratorContext(
            platform_id=platform_id,
            runner=runner,
            binding_loader=lambda: binding,
            **kwargs,
        )
        return ServiceManager(context)

    return factory


@pytest.fixture
def restore_signals():
    """Restore SIGINT/SIGTERM handlers after a test installs its own."""
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
