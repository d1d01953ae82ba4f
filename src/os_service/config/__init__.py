"""Service descriptors, definition loading and well-known paths."""

from os_service.config.loader import load_definition
from os_service.config.models import ServiceDescriptor, ServiceOptions

__all__ = [
    "ServiceDescriptor",
    "ServiceOptions",
    "load_definition",
]
