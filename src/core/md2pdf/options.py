"""Default merging and bounds checking for conversion requests.

This is the single place where caller-supplied options are validated and
defaulted; everything downstream receives a resolved ``ConversionOptions``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import FieldError, ValidationError
from .models import (
    DEFAULT_FILE_NAME,
    DEFAULT_FOOTER_TEMPLATE,
    ConversionOptions,
    ConversionRequest,
    Margin,
    PageFormat,
)

DEFAULT_MAX_MARKDOWN_CHARS = 10 * 1024 * 1024


class _MarginModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    top: str = "1in"
    right: str = "1in"
    bottom: str = "1in"
    left: str = "1in"


class _OptionsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    file_name: str = Field(DEFAULT_FILE_NAME, alias="fileName", min_length=1, max_length=255)
    format: PageFormat = "A4"
    landscape: bool = False
    margin: _MarginModel = Field(default_factory=_MarginModel)
    header_template: str = Field("", alias="headerTemplate")
    footer_template: str = Field(DEFAULT_FOOTER_TEMPLATE, alias="footerTemplate")
    include_page_numbers: bool = Field(True, alias="includePageNumbers")
    pages: Any = None

    @field_validator("pages", mode="before")
    @classmethod
    def _check_pages(cls, value: Any) -> str | tuple[str, ...] | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            return tuple(value)
        raise ValueError("must be a string or an array of strings")

    def to_options(self) -> ConversionOptions:
        return ConversionOptions(
            file_name=self.file_name,
            format=self.format,
            landscape=self.landscape,
            margin=Margin(
                top=self.margin.top,
                right=self.margin.right,
                bottom=self.margin.bottom,
                left=self.margin.left,
            ),
            header_template=self.header_template,
            footer_template=self.footer_template,
            include_page_numbers=self.include_page_numbers,
            pages=self.pages,
        )


def _field_path(prefix: str, loc: tuple[int | str, ...]) -> str:
    parts = [prefix] if prefix else []
    parts.extend(str(part) for part in loc)
    return ".".join(parts) or "options"


def _translate(exc: pydantic.ValidationError, prefix: str) -> list[FieldError]:
    details: list[FieldError] = []
    for error in exc.errors():
        message = str(error["msg"])
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        details.append(FieldError(field=_field_path(prefix, tuple(error["loc"])), message=message))
    return details


def resolve_options(
    raw: Mapping[str, Any] | ConversionOptions | None,
    *,
    prefix: str = "",
) -> ConversionOptions:
    """Merge *raw* caller options with defaults, raising ``ValidationError`` on bad input."""

    if isinstance(raw, ConversionOptions):
        return raw
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValidationError([FieldError(field=prefix or "options", message="must be an object")])
    try:
        model = _OptionsModel.model_validate(dict(raw))
    except pydantic.ValidationError as exc:
        raise ValidationError(_translate(exc, prefix)) from exc
    return model.to_options()


def _check_markdown(markdown: object, max_chars: int) -> list[FieldError]:
    if not isinstance(markdown, str):
        return [FieldError(field="markdownContent", message="must be a string")]
    if not markdown:
        return [FieldError(field="markdownContent", message="is not allowed to be empty")]
    if len(markdown) > max_chars:
        return [
            FieldError(
                field="markdownContent",
                message=f"length must be less than or equal to {max_chars} characters long",
            )
        ]
    return []


def resolve_request(
    markdown: object,
    raw_options: Mapping[str, Any] | ConversionOptions | None = None,
    *,
    max_chars: int = DEFAULT_MAX_MARKDOWN_CHARS,
) -> ConversionRequest:
    details = _check_markdown(markdown, max_chars)
    options: ConversionOptions | None = None
    try:
        options = resolve_options(raw_options, prefix="options")
    except ValidationError as exc:
        details.extend(exc.details)
    if details or options is None:
        raise ValidationError(details)
    return ConversionRequest(markdown_content=str(markdown), options=options)


__all__ = ["DEFAULT_MAX_MARKDOWN_CHARS", "resolve_options", "resolve_request"]
