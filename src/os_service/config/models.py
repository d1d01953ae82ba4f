"""Service descriptor models using Pydantic."""

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from os_service.errors import DescriptorError

DEFAULT_RUN_LEVELS = [2, 3, 4, 5]
DEFAULT_WANTED_BY = "multi-user.target"

# Characters that cannot appear in a name used verbatim as a file name
_FORBIDDEN_NAME_CHARS = ("/", "\\", "\0")


class ServiceOptions(BaseModel):
    """Options accepted by ``add(name, options)``.

    Field names are snake_case; the camelCase spellings (``displayName``,
    ``runLevels``, ``systemdWantedBy``) are accepted as well.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    command: str | None = None  # None = the running interpreter
    args: list[str] = Field(default_factory=list)
    # Windows only
    username: str | None = None
    password: SecretStr | None = None
    dependencies: list[str] = Field(default_factory=list)
    display_name: str | None = None
    # SysV only
    run_levels: list[int] = Field(default_factory=lambda: list(DEFAULT_RUN_LEVELS))
    # systemd only
    systemd_wanted_by: str = DEFAULT_WANTED_BY

    @field_validator("run_levels")
    @classmethod
    def _check_run_levels(cls, value: list[int]) -> list[int]:
        for level in value:
            if not 0 <= level <= 6:
                raise ValueError(f"run level {level} is outside 0-6")
        return value


class ServiceDescriptor(ServiceOptions):
    """Everything needed to register one service.

    Exists only for the duration of an ``add`` call; once registered, the
    OS service manager is the system of record.
    """

    name: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value:
            raise ValueError("service name must not be empty")
        if any(char in value for char in _FORBIDDEN_NAME_CHARS):
            raise ValueError(f"service name {value!r} contains a path separator")
        return value

    @classmethod
    def from_options(
        cls,
        name: str,
        options: ServiceOptions | Mapping[str, Any] | None = None,
    ) -> "ServiceDescriptor":
        """Build a descriptor from a name plus options.

        Raises:
            DescriptorError: If the name or any option is invalid.
        """
        if options is None:
            data: dict[str, Any] = {}
        elif isinstance(options, ServiceOptions):
            data = options.model_dump(exclude_unset=True)
        else:
            data = dict(options)

        try:
            return cls.model_validate({**data, "name": name})
        except ValidationError as e:
            raise DescriptorError(f"Invalid service {name!r}: {e}") from e

    @property
    def resolved_command(self) -> str:
        """Executable to run, defaulting to the running interpreter."""
        return self.command or sys.executable

    @property
    def cwd(self) -> str:
        """Working directory: the command's directory, or home if it has none."""
        directory = os.path.dirname(self.resolved_command)
        return directory or str(Path.home())

    @property
    def label(self) -> str:
        """Human readable name."""
        return self.display_name or self.name

    def command_tokens(self, quote: bool) -> list[str]:
        """Command followed by its arguments.

        Args:
            quote: Wrap each token in double quotes. Embedded quotes are
                passed through unescaped.
        """
        tokens = [self.resolved_command, *self.args]
        if quote:
            return [f'"{token}"' for token in tokens]
        return tokens

    def command_line(self, quote: bool = True) -> str:
        """Space-joined invocation line."""
        return " ".join(self.command_tokens(quote))
