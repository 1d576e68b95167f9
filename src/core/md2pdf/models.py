"""Domain models for markdown to PDF conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .logging import StageTimings

PageFormat = Literal["A4", "A3", "A5", "Legal", "Letter", "Tabloid"]

PAGE_FORMATS: tuple[str, ...] = ("A4", "A3", "A5", "Legal", "Letter", "Tabloid")

DEFAULT_FILE_NAME = "document.pdf"

DEFAULT_FOOTER_TEMPLATE = (
    '<div style="font-size: 10px; text-align: center; width: 100%; margin: 0 10px;">'
    '<span class="pageNumber"></span> / <span class="totalPages"></span>'
    "</div>"
)


@dataclass(frozen=True, slots=True)
class Margin:
    top: str = "1in"
    right: str = "1in"
    bottom: str = "1in"
    left: str = "1in"

    def as_dict(self) -> dict[str, str]:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Fully resolved options for a single conversion."""

    file_name: str = DEFAULT_FILE_NAME
    format: PageFormat = "A4"
    landscape: bool = False
    margin: Margin = field(default_factory=Margin)
    header_template: str = ""
    footer_template: str = DEFAULT_FOOTER_TEMPLATE
    include_page_numbers: bool = True
    pages: str | tuple[str, ...] | None = None

    def as_dict(self) -> dict[str, object]:
        pages: str | list[str] | None
        if isinstance(self.pages, tuple):
            pages = list(self.pages)
        else:
            pages = self.pages
        return {
            "fileName": self.file_name,
            "format": self.format,
            "landscape": self.landscape,
            "margin": self.margin.as_dict(),
            "headerTemplate": self.header_template,
            "footerTemplate": self.footer_template,
            "includePageNumbers": self.include_page_numbers,
            "pages": pages,
        }


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    markdown_content: str
    options: ConversionOptions


@dataclass(slots=True)
class ConversionResult:
    """A rendered PDF plus the metadata recorded for its run."""

    run_id: str
    pdf: bytes
    options: ConversionOptions
    page_ranges: str | None
    timings: StageTimings

    @property
    def size_bytes(self) -> int:
        return len(self.pdf)


__all__ = [
    "ConversionOptions",
    "ConversionRequest",
    "ConversionResult",
    "DEFAULT_FILE_NAME",
    "DEFAULT_FOOTER_TEMPLATE",
    "Margin",
    "PAGE_FORMATS",
    "PageFormat",
]
