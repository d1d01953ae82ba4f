"""Service definition templates.

Pure rendering: turns a ServiceDescriptor into the text of a SysV init
script, a systemd unit or a launchd plist. No I/O happens here.

SysV and systemd templates use ``##TOKEN##`` placeholders; every occurrence
of every token is substituted. Shell-interpreted strategies get each command
token wrapped in double quotes, launchd gets the bare argument array.
"""

import plistlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import assert_never

from os_service.config.models import ServiceDescriptor
from os_service.config.paths import (
    get_init_script_path,
    get_plist_path,
    get_unit_path,
)
from os_service.strategy import Strategy

SCRIPT_MODE = 0o755  # rwxr-xr-x
PLIST_MODE = 0o644

PLACEHOLDER = re.compile(r"##([A-Z_]+)##")

SYSV_INIT_SCRIPT = """\
#!/bin/bash

### BEGIN INIT INFO
# Provides:          ##NAME##
# Required-Start:    ##DEPENDENCIES##
# Required-Stop:
# Default-Start:     ##RUN_LEVELS_ARR##
# Default-Stop:      0 1 6
# Short-Description: Start ##NAME## at boot time
# Description:       Enable ##NAME## service.
### END INIT INFO

# chkconfig:   ##RUN_LEVELS_STR## 99 1
# description: ##NAME##

umask 0007
pidfile="/var/run/##NAME##.pid"

set_pid () {
	unset PID
	_PID=`head -1 $pidfile 2>/dev/null`
	if [ $_PID ]; then
		kill -0 $_PID 2>/dev/null && PID=$_PID
	fi
}

force_reload () {
	stop
	start
}

restart () {
	stop
	start
}

start () {
	CNT=5

	set_pid

	if [ -z "$PID" ]; then
		echo starting ##NAME##

		##COMMAND## >/dev/null 2>&1 &

		echo $! > $pidfile

		while [ : ]; do
			set_pid

			if [ -n "$PID" ]; then
				echo started ##NAME##
				break
			else
				if [ $CNT -gt 0 ]; then
					sleep 1
					CNT=`expr $CNT - 1`
				else
					echo ERROR - failed to start ##NAME##
					break
				fi
			fi
		done
	else
		echo ##NAME## is already started
	fi
}

status () {
	set_pid

	if [ -z "$PID" ]; then
		exit 1
	else
		exit 0
	fi
}

stop () {
	CNT=5

	set_pid

	if [ -n "$PID" ]; then
		echo stopping ##NAME##

		kill $PID

		while [ : ]; do
			set_pid

			if [ -z "$PID" ]; then
				rm $pidfile
				echo stopped ##NAME##
				break
			else
				if [ $CNT -gt 0 ]; then
					sleep 1
					CNT=`expr $CNT - 1`
				else
					echo ERROR - failed to stop ##NAME##
					break
				fi
			fi
		done
	else
		echo ##NAME## is already stopped
	fi
}

case $1 in
	force-reload)
		force_reload
		;;
	restart)
		restart
		;;
	start)
		start
		;;
	status)
		status
		;;
	stop)
		stop
		;;
	*)
		echo "usage: $0 <force-reload|restart|start|status|stop>"
		exit 1
		;;
esac
"""

SYSTEMD_UNIT = """\
[Unit]
Description=##NAME##
After=network.target
Requires=##DEPENDENCIES##

[Service]
WorkingDirectory=##CWD##
Restart=always
StandardOutput=null
StandardError=null
UMask=0007
ExecStart=##COMMAND##

[Install]
WantedBy=##SYSTEMD_WANTED_BY##
"""


@dataclass(frozen=True)
class RenderedArtifact:
    """A rendered service definition and where it belongs on disk."""

    text: str
    path: Path
    mode: int


@dataclass(frozen=True)
class ScmRegistration:
    """Arguments for registering a service with the Windows SCM.

    ``dependencies`` uses the Windows multi-string convention: names joined
    by NUL and terminated by a double NUL, or an empty string for none.
    """

    name: str
    display_name: str
    command_line: str
    username: str | None
    password: str | None
    dependencies: str


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace every ``##TOKEN##`` in template.

    Raises:
        KeyError: If the template uses a token missing from values.
    """
    return PLACEHOLDER.sub(lambda match: values[match.group(1)], template)


def _shell_values(descriptor: ServiceDescriptor) -> dict[str, str]:
    return {
        "NAME": descriptor.name,
        "COMMAND": descriptor.command_line(quote=True),
        "DEPENDENCIES": " ".join(descriptor.dependencies),
        "CWD": descriptor.cwd,
    }


def render_sysv_script(descriptor: ServiceDescriptor) -> str:
    """Render an LSB init script."""
    values = _shell_values(descriptor)
    values["RUN_LEVELS_ARR"] = " ".join(str(level) for level in descriptor.run_levels)
    values["RUN_LEVELS_STR"] = "".join(str(level) for level in descriptor.run_levels)
    return substitute(SYSV_INIT_SCRIPT, values)


def render_systemd_unit(descriptor: ServiceDescriptor) -> str:
    """Render a systemd unit file."""
    values = _shell_values(descriptor)
    values["SYSTEMD_WANTED_BY"] = descriptor.systemd_wanted_by
    return substitute(SYSTEMD_UNIT, values)


def render_launchd_plist(descriptor: ServiceDescriptor) -> str:
    """Render a launchd property list.

    launchd execs ProgramArguments directly, so arguments are not quoted.
    """
    plist = {
        "Title": descriptor.label,
        "Label": descriptor.name,
        "ProgramArguments": descriptor.command_tokens(quote=False),
        "RunAtLoad": True,
        "KeepAlive": True,
        "WorkingDirectory": descriptor.cwd,
    }
    return plistlib.dumps(plist, fmt=plistlib.FMT_XML).decode("utf-8")


def render_scm_registration(descriptor: ServiceDescriptor) -> ScmRegistration:
    """Build the structured SCM registration for a descriptor."""
    dependencies = ""
    if descriptor.dependencies:
        dependencies = "\0".join(descriptor.dependencies) + "\0\0"

    return ScmRegistration(
        name=descriptor.name,
        display_name=descriptor.label,
        command_line=descriptor.command_line(quote=True),
        username=descriptor.username,
        password=(
            descriptor.password.get_secret_value() if descriptor.password else None
        ),
        dependencies=dependencies,
    )


def render(strategy: Strategy, descriptor: ServiceDescriptor) -> str | None:
    """Render the text artifact for a strategy.

    Returns:
        Artifact text, or None for strategies without a file artifact.
    """
    match strategy:
        case Strategy.LINUX_SYSV:
            return render_sysv_script(descriptor)
        case Strategy.LINUX_SYSTEMD:
            return render_systemd_unit(descriptor)
        case Strategy.MACOS_LAUNCHD:
            return render_launchd_plist(descriptor)
        case Strategy.WINDOWS_SCM:
            return None
        case _:
            assert_never(strategy)


def artifact_path(strategy: Strategy, name: str) -> Path | None:
    """Canonical artifact path for a service under a strategy."""
    match strategy:
        case Strategy.LINUX_SYSV:
            return get_init_script_path(name)
        case Strategy.LINUX_SYSTEMD:
            return get_unit_path(name)
        case Strategy.MACOS_LAUNCHD:
            return get_plist_path(name)
        case Strategy.WINDOWS_SCM:
            return None
        case _:
            assert_never(strategy)


def artifact_mode(strategy: Strategy) -> int:
    """File mode the artifact is written with."""
    match strategy:
        case Strategy.LINUX_SYSV | Strategy.LINUX_SYSTEMD:
            return SCRIPT_MODE
        case Strategy.MACOS_LAUNCHD | Strategy.WINDOWS_SCM:
            return PLIST_MODE
        case _:
            assert_never(strategy)


def render_artifact(
    strategy: Strategy, descriptor: ServiceDescriptor
) -> RenderedArtifact | None:
    """Render the artifact together with its canonical path and mode.

    Produced fresh on every call; nothing is cached. Strategies that register
    with a native API instead of writing a file have no artifact.
    """
    if not strategy.writes_artifact:
        return None
    text = render(strategy, descriptor)
    path = artifact_path(strategy, descriptor.name)
    if text is None or path is None:
        return None
    return RenderedArtifact(text=text, path=path, mode=artifact_mode(strategy))
