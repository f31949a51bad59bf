"""Format adapters that turn document bytes into plain text."""

from .base import AdapterResult, BaseFormatAdapter, ExtractionOptions
from .factory import create_adapter, extension_of, is_supported_format, resolve_format

__all__ = [
    "AdapterResult",
    "BaseFormatAdapter",
    "ExtractionOptions",
    "create_adapter",
    "extension_of",
    "is_supported_format",
    "resolve_format",
]
