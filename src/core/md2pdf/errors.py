"""Error taxonomy shared by the CLI and HTTP surfaces."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    RENDER = "render"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str


class ConversionError(RuntimeError):
    kind: ErrorKind = ErrorKind.RENDER

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class ValidationError(ConversionError):
    """Request data was malformed or out of bounds; carries one entry per violation."""

    kind = ErrorKind.VALIDATION

    def __init__(self, details: list[FieldError]) -> None:
        self.details = list(details)
        payload = json.dumps([asdict(detail) for detail in self.details])
        super().__init__("VALIDATION_FAILED", f"Validation failed: {payload}")

    @property
    def fields(self) -> list[str]:
        return [detail.field for detail in self.details]


class RenderError(ConversionError):
    kind = ErrorKind.RENDER


class RenderTimeoutError(ConversionError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, stage: str, timeout_s: float) -> None:
        super().__init__("TIMEOUT", f"PDF conversion timed out during {stage} after {timeout_s:g}s")
        self.stage = stage
        self.timeout_s = timeout_s


__all__ = [
    "ConversionError",
    "ErrorKind",
    "FieldError",
    "RenderError",
    "RenderTimeoutError",
    "ValidationError",
]
