"""Markdown to PDF rendering through a headless Chromium engine."""

from .config import AppConfig, load_config
from .core import ConversionService, convert_markdown_to_pdf
from .engine import RenderEngineManager
from .errors import ConversionError, ErrorKind, FieldError, RenderError, RenderTimeoutError, ValidationError
from .models import ConversionOptions, ConversionRequest, ConversionResult, Margin

__all__ = [
    "AppConfig",
    "load_config",
    "ConversionError",
    "ConversionOptions",
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "ErrorKind",
    "FieldError",
    "Margin",
    "RenderEngineManager",
    "RenderError",
    "RenderTimeoutError",
    "ValidationError",
    "convert_markdown_to_pdf",
]
