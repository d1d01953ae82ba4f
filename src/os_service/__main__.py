"""Allow running as ``python -m os_service``."""

from os_service.cli.app import app

app()
