"""Conversions through a real headless Chromium; skipped when none is installed."""

from __future__ import annotations

import asyncio

import pytest

pytest.importorskip("playwright.async_api")

from core.md2pdf.config import AppConfig, EngineConfig, RuntimeConfig
from core.md2pdf.core import ConversionService
from core.md2pdf.errors import RenderError

E2E_LAUNCH_ARGS = ("--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu")

SAMPLE = """# Annual report

Some **bold** text and a table:

| Quarter | Revenue |
| ------- | ------- |
| Q1      | 10      |
| Q2      | 12      |

<script>document.body.innerHTML = "";</script>
"""


def _run(coro_factory):
    async def scenario():
        config = AppConfig(runtime=RuntimeConfig(log_dir=None), engine=EngineConfig(launch_args=E2E_LAUNCH_ARGS))
        service = ConversionService(config)
        try:
            return await coro_factory(service)
        except RenderError as exc:
            if exc.code.startswith("ENGINE_"):
                pytest.skip(f"Chromium unavailable: {exc}")
            raise
        finally:
            await service.close()

    return asyncio.run(scenario())


def test_real_conversion_produces_pdf() -> None:
    pdf = _run(lambda service: service.convert(SAMPLE, {"format": "Letter"}))

    assert pdf.startswith(b"%PDF-")
    assert len(pdf) > 1000


def test_real_engine_is_reused_across_conversions() -> None:
    async def twice(service: ConversionService):
        first = await service.convert("# One")
        second = await service.convert("# Two", {"pages": "1", "includePageNumbers": False})
        return first, second, service.engine.active_contexts

    first, second, active = _run(twice)

    assert first.startswith(b"%PDF-")
    assert second.startswith(b"%PDF-")
    assert active == 0
