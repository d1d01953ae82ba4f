"""Service definition loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from os_service.config.models import ServiceDescriptor
from os_service.errors import DescriptorError

PASSWORD_ENV_VAR = "OS_SERVICE_PASSWORD"


def _resolve_env_secrets(definition: dict[str, Any]) -> dict[str, Any]:
    """Fill the service password from the environment when not set in the file."""
    if definition.get("password") is None:
        value = os.environ.get(PASSWORD_ENV_VAR)
        if value:
            definition["password"] = SecretStr(value)
    return definition


def load_definition(path: Path, name: str | None = None) -> ServiceDescriptor:
    """Load a service definition from a TOML file.

    Example file:

        name = "demo"
        command = "/usr/bin/python3"
        args = ["-m", "demo", "--run"]
        dependencies = ["network-online.target"]

    Args:
        path: Path to the definition file.
        name: Service name, overriding any ``name`` key in the file.

    Returns:
        Validated ServiceDescriptor.

    Raises:
        FileNotFoundError: If the file does not exist.
        DescriptorError: If the file is not valid TOML or has invalid fields.
    """
    definition_path = Path(path).expanduser()
    if not definition_path.exists():
        raise FileNotFoundError(f"Service definition not found: {definition_path}")

    try:
        with definition_path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise DescriptorError(f"Invalid TOML in {definition_path}: {e}") from e

    raw = _resolve_env_secrets(raw)

    file_name = raw.pop("name", None)
    service_name = name or file_name
    if not service_name:
        raise DescriptorError(f"No service name given in {definition_path}")

    return ServiceDescriptor.from_options(service_name, raw)
