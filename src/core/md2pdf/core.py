from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

from .composer import compose_html
from .config import AppConfig
from .engine import RenderEngineManager
from .errors import ConversionError, RenderError, RenderTimeoutError
from .logging import RunLogEntry, RunLogger, StageTimings
from .models import ConversionOptions, ConversionRequest, ConversionResult
from .options import resolve_request
from .pages import parse_page_range
from .sanitizer import sanitize_markdown
from .utils import generate_run_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

RawOptions = Mapping[str, Any] | ConversionOptions | None


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def build_print_options(options: ConversionOptions, page_ranges: str | None) -> dict[str, Any]:
    """Translate resolved options into keyword arguments for ``Page.pdf``."""

    print_options: dict[str, Any] = {
        "format": options.format,
        "landscape": options.landscape,
        "margin": options.margin.as_dict(),
        "print_background": True,
        "prefer_css_page_size": True,
    }
    if options.include_page_numbers and (options.header_template or options.footer_template):
        print_options["display_header_footer"] = True
        print_options["header_template"] = options.header_template
        print_options["footer_template"] = options.footer_template
    if page_ranges:
        print_options["page_ranges"] = page_ranges
    return print_options


class ConversionService:
    def __init__(self, config: AppConfig, engine: RenderEngineManager | None = None) -> None:
        self._config = config
        self._engine = engine or RenderEngineManager(config.engine)
        self._run_logger = RunLogger(config.runtime.log_path)

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def engine(self) -> RenderEngineManager:
        return self._engine

    def validate(self, markdown: object, options: RawOptions = None) -> ConversionRequest:
        return resolve_request(markdown, options, max_chars=self._config.runtime.max_markdown_chars)

    def render_html(self, markdown: object, options: RawOptions = None) -> str:
        request = self.validate(markdown, options)
        return compose_html(sanitize_markdown(request.markdown_content), request.options)

    async def convert(self, markdown: object, options: RawOptions = None) -> bytes:
        start = time.perf_counter()
        request = self.validate(markdown, options)
        result = await self.convert_request(request, timings=StageTimings(validate_ms=_elapsed_ms(start)))
        return result.pdf

    async def convert_request(
        self,
        request: ConversionRequest,
        *,
        run_id: str | None = None,
        timings: StageTimings | None = None,
    ) -> ConversionResult:
        run_id = run_id or generate_run_id("pdf")
        timings = timings or StageTimings()
        page_ranges = parse_page_range(request.options.pages)
        logger.info("Starting PDF conversion %s (%d chars)", run_id, len(request.markdown_content))
        try:
            pdf = await self._render(request, page_ranges, timings)
        except ConversionError as exc:
            logger.error("PDF conversion %s failed: %s", run_id, exc)
            self._log_run(run_id, request, "failure", exc.code, 0, page_ranges, timings)
            raise
        except Exception as exc:
            logger.error("PDF conversion %s failed: %s", run_id, exc, exc_info=True)
            self._log_run(run_id, request, "failure", "RENDER_FAILED", 0, page_ranges, timings)
            raise RenderError("RENDER_FAILED", f"PDF conversion failed: {exc}") from exc

        self._log_run(run_id, request, "success", None, len(pdf), page_ranges, timings)
        logger.info("PDF conversion %s completed in %.0fms (%d bytes)", run_id, timings.total_ms, len(pdf))
        return ConversionResult(
            run_id=run_id,
            pdf=pdf,
            options=request.options,
            page_ranges=page_ranges,
            timings=timings,
        )

    async def _render(
        self,
        request: ConversionRequest,
        page_ranges: str | None,
        timings: StageTimings,
    ) -> bytes:
        runtime = self._config.runtime
        compose_start = time.perf_counter()
        html = compose_html(sanitize_markdown(request.markdown_content), request.options)
        timings.compose_ms = _elapsed_ms(compose_start)

        async with self._engine.acquire_context() as context:
            load_start = time.perf_counter()
            await self._within(
                context.set_content(html, wait_until="networkidle", timeout=0),
                "content load",
                runtime.load_timeout_s,
            )
            timings.load_ms = _elapsed_ms(load_start)

            render_start = time.perf_counter()
            print_options = build_print_options(request.options, page_ranges)
            logger.debug("Print options: %s", {k: v for k, v in print_options.items() if "template" not in k})
            pdf = await self._within(context.pdf(**print_options), "render", runtime.render_timeout_s)
            timings.render_ms = _elapsed_ms(render_start)
        return pdf

    @staticmethod
    async def _within(awaitable: Awaitable[T], stage: str, timeout_s: float) -> T:
        if timeout_s <= 0:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout_s)
        except asyncio.TimeoutError as exc:
            raise RenderTimeoutError(stage, timeout_s) from exc

    def _log_run(
        self,
        run_id: str,
        request: ConversionRequest,
        status: str,
        error_code: str | None,
        output_bytes: int,
        page_ranges: str | None,
        timings: StageTimings,
    ) -> None:
        try:
            self._run_logger.append(
                RunLogEntry(
                    run_id=run_id,
                    status=status,
                    error_code=error_code,
                    markdown_chars=len(request.markdown_content),
                    output_bytes=output_bytes,
                    page_ranges=page_ranges,
                    timings=timings,
                )
            )
        except OSError:
            logger.warning("Could not write run log entry for %s", run_id, exc_info=True)

    async def close(self) -> None:
        await self._engine.close()


async def convert_markdown_to_pdf(
    markdown: str,
    options: RawOptions = None,
    *,
    config: AppConfig | None = None,
) -> bytes:
    """Convert once with a private engine that is always shut down afterwards."""

    service = ConversionService(config or AppConfig())
    try:
        return await service.convert(markdown, options)
    finally:
        await service.close()


__all__ = [
    "ConversionService",
    "build_print_options",
    "convert_markdown_to_pdf",
]
