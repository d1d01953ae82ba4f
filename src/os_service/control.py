"""External service-control command execution.

Every lifecycle step that talks to the OS goes through ``invoke``: spawn the
tool, wait for it, and turn the result into an Outcome or an error. A tool
that is not installed is reported separately from a tool that failed, because
callers fall back to an alternative tool (chkconfig -> update-rc.d) only in
the first case.

There is no timeout: a hung tool hangs the caller.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from os_service.errors import ControlPlaneError, ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Completed external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""


class Outcome(Enum):
    """How a control command ended, when it did not raise."""

    SUCCESS = "success"
    TOLERATED = "tolerated"  # failed, but already in the desired state
    TOOL_ABSENT = "tool_absent"  # not installed; caller falls back


@dataclass(frozen=True)
class ControlCommand:
    """A single external invocation and how to interpret its result.

    Attributes:
        program: Tool to run, looked up on PATH.
        args: Arguments passed to the tool.
        fallback_on_absent: Report a missing tool as Outcome.TOOL_ABSENT
            instead of raising ToolNotFoundError.
        tolerate: Predicate over a failed result; True treats the failure
            as Outcome.TOLERATED.
    """

    program: str
    args: tuple[str, ...] = ()
    fallback_on_absent: bool = False
    tolerate: Callable[[CommandResult], bool] | None = field(
        default=None, compare=False
    )

    def __str__(self) -> str:
        return " ".join((self.program, *self.args))


Runner = Callable[[str, tuple[str, ...]], Awaitable[CommandResult]]


async def run_command(program: str, args: tuple[str, ...]) -> CommandResult:
    """Run a program without a shell and wait for it.

    Raises:
        FileNotFoundError: If the program is not installed.
    """
    proc = await asyncio.create_subprocess_exec(
        program,
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return CommandResult(
        returncode=proc.returncode or 0,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


async def invoke(command: ControlCommand, runner: Runner = run_command) -> Outcome:
    """Run a control command and classify its result.

    Raises:
        ToolNotFoundError: If the program is missing and the command does
            not fall back.
        ControlPlaneError: If the program exits non-zero and the failure is
            not tolerated.
    """
    logger.debug("Running: %s", command)
    try:
        result = await runner(command.program, command.args)
    except FileNotFoundError as e:
        if command.fallback_on_absent:
            logger.debug("%s is not installed", command.program)
            return Outcome.TOOL_ABSENT
        raise ToolNotFoundError(command.program) from e
    except OSError as e:
        raise ControlPlaneError(
            command.program, message=f"{command.program} failed: {e}"
        ) from e

    if result.returncode == 0:
        return Outcome.SUCCESS

    if command.tolerate is not None and command.tolerate(result):
        logger.warning(
            "Ignoring %s failure (exit %d): %s",
            command,
            result.returncode,
            result.stderr.strip(),
        )
        return Outcome.TOLERATED

    raise ControlPlaneError(command.program, result.returncode, result.stderr.strip())


async def invoke_chain(
    *commands: ControlCommand, runner: Runner = run_command
) -> Outcome:
    """Run the first command whose tool is installed.

    Each command except the last should set ``fallback_on_absent``; the
    next one runs only when the previous tool is missing, never on failure.

    Raises:
        ToolNotFoundError: If no tool in the chain is installed.
        ControlPlaneError: If the first installed tool fails.
    """
    if not commands:
        raise ValueError("invoke_chain needs at least one command")

    for command in commands:
        outcome = await invoke(command, runner)
        if outcome is not Outcome.TOOL_ABSENT:
            return outcome
        logger.warning("%s not found, falling back", command.program)

    raise ToolNotFoundError(commands[-1].program)


UNKNOWN_SERVICE_MARKERS = (
    "not loaded",
    "not found",
    "does not exist",
    "no such file or directory",
    "error reading information on service",  # chkconfig
)


def service_unknown(result: CommandResult) -> bool:
    """Whether a control tool failed because the service is not registered."""
    stderr = result.stderr.lower()
    return any(marker in stderr for marker in UNKNOWN_SERVICE_MARKERS)
