from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "MD2PDF_"
SERVICE_NAME = "markdown-to-pdf-service"
SERVICE_VERSION = "1.0.0"

__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "SERVICE_NAME", "SERVICE_VERSION"]
