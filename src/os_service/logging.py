"""Centralized logging configuration for os-service.

Entry points (the CLI, or a program hosting a service) call
configure_logging() once at startup; library modules only create loggers.

Logging Levels:
- DEBUG: Spawned commands, probe results, artifact writes
- INFO: Lifecycle operations (add, remove, start, stop, exit)
- WARNING: Tolerated tool failures and tool fallbacks
- ERROR: Failures that abort an operation
"""

import logging
import os
import re
from dataclasses import dataclass, field

ENV_VAR = "OS_SERVICE_LOG_LEVEL"

# Credentials can reach log lines through command lines and option dumps
DEFAULT_REDACT_PATTERNS: list[str] = [
    # ENV-style and option assignments: password=secret, PASSWORD: secret
    r"\b[A-Za-z0-9_]*(?:PASSWORD|PASSWD|SECRET|TOKEN)\s*[=:]\s*['\"]?([^\s\"']+)",
    # CLI flags: --password secret
    r"--password[=\s]+['\"]?([^\s\"']+)",
]


@dataclass
class SecretRedactor:
    """Redacts credentials from log messages.

    Short values are fully masked; longer ones keep their first and last
    two characters for identification.
    """

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.patterns:
            self.patterns = [
                re.compile(p, re.IGNORECASE) for p in DEFAULT_REDACT_PATTERNS
            ]

    def redact(self, text: str) -> str:
        """Redact secrets from text."""
        if not self.enabled or not text:
            return text
        result = text
        for pattern in self.patterns:
            result = pattern.sub(self._mask_match, result)
        return result

    def _mask_match(self, match: re.Match[str]) -> str:
        full = match.group(0)
        secret = match.group(1)
        if len(secret) < 8:
            masked = "***"
        else:
            masked = f"{secret[:2]}...{secret[-2:]}"
        start, end = match.span(1)
        offset = match.start(0)
        return full[: start - offset] + masked + full[end - offset :]


class RedactingFilter(logging.Filter):
    """Filter that rewrites each record's message through a SecretRedactor."""

    def __init__(self, redactor: SecretRedactor | None = None):
        super().__init__()
        self._redactor = redactor or SecretRedactor()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self._redactor.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class ComponentFormatter(logging.Formatter):
    """Formatter that extracts component name from logger path.

    Converts full module paths to short component names:
    - os_service.backends.systemd -> backends
    - os_service.manager -> manager
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        if len(parts) >= 2 and parts[0] == "os_service":
            record.component = parts[1]
        else:
            record.component = parts[0]
        return super().format(record)


def resolve_level(level: str | None) -> int:
    """Resolve a level name, falling back to OS_SERVICE_LOG_LEVEL, then INFO."""
    if level is None:
        level = os.environ.get(ENV_VAR, "INFO")
    level = level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"
    return getattr(logging, level)


def configure_logging(level: str | None = None, use_rich: bool = False) -> None:
    """Configure logging for os-service.

    Call this once at application startup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses OS_SERVICE_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful console output.
    """
    log_level = resolve_level(level)

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    console_handler.addFilter(RedactingFilter())

    logging.basicConfig(
        level=log_level,
        handlers=[console_handler],
        force=True,
    )

    # asyncio logs every slow callback at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
