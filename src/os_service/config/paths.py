"""Well-known service manager locations.

System locations can be re-rooted with the OS_SERVICE_ROOT environment
variable, which is how packaging chroots and the test suite avoid touching
the real /etc and /usr.

Default locations:
- systemd units: /usr/lib/systemd/system/<name>.service
- SysV init scripts: /etc/init.d/<name>
- launchd agents: ~/Library/LaunchAgents/<name>.plist
"""

import os
from pathlib import Path

ENV_VAR = "OS_SERVICE_ROOT"


def get_system_root() -> Path:
    """Get the root that system service directories are resolved against.

    Resolution order:
    1. OS_SERVICE_ROOT environment variable (if set)
    2. Filesystem root

    Returns:
        Path to the system root.
    """
    if env_root := os.environ.get(ENV_VAR):
        return Path(env_root).expanduser().resolve()
    return Path("/")


def get_systemd_unit_dir() -> Path:
    """Get the systemd system unit directory.

    Its presence is what marks a host as running systemd.
    """
    return get_system_root() / "usr" / "lib" / "systemd" / "system"


def get_init_dir() -> Path:
    """Get the SysV init script directory."""
    return get_system_root() / "etc" / "init.d"


def get_launch_agents_dir() -> Path:
    """Get the per-user launchd agents directory."""
    return Path.home() / "Library" / "LaunchAgents"


def get_unit_path(name: str) -> Path:
    """Get the systemd unit file path for a service."""
    return get_systemd_unit_dir() / f"{name}.service"


def get_init_script_path(name: str) -> Path:
    """Get the SysV init script path for a service."""
    return get_init_dir() / name


def get_plist_path(name: str) -> Path:
    """Get the launchd plist path for a service."""
    return get_launch_agents_dir() / f"{name}.plist"


def get_all_paths() -> dict[str, Path]:
    """Get all standard locations for debugging/display."""
    return {
        "root": get_system_root(),
        "systemd_units": get_systemd_unit_dir(),
        "init_scripts": get_init_dir(),
        "launch_agents": get_launch_agents_dir(),
    }
