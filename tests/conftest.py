from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from core.md2pdf.config import AppConfig, RuntimeConfig
from core.md2pdf.core import ConversionService
from core.md2pdf.engine import RenderEngineManager

FAKE_PDF = b"%PDF-1.7\n%fake document\n%%EOF\n"


class FakePage:
    def __init__(self, engine: FakeEngine) -> None:
        self._engine = engine
        self.content: str | None = None
        self.load_options: dict[str, object] = {}
        self.pdf_options: dict[str, object] | None = None
        self.closed = False

    async def set_content(self, html: str, **kwargs: object) -> None:
        if self._engine.load_delay:
            await asyncio.sleep(self._engine.load_delay)
        self.content = html
        self.load_options = kwargs

    async def pdf(self, **kwargs: object) -> bytes:
        self.pdf_options = kwargs
        if self._engine.render_error is not None:
            raise RuntimeError(self._engine.render_error)
        return self._engine.pdf_bytes

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, engine: FakeEngine) -> None:
        self._engine = engine
        self.connected = True
        self.closed = False
        self.pages: list[FakePage] = []

    async def new_context(self) -> FakePage:
        page = FakePage(self._engine)
        self.pages.append(page)
        return page

    def is_connected(self) -> bool:
        return self.connected

    async def close(self) -> None:
        self.closed = True
        self.connected = False


class FakeEngine:
    """Launcher double that records every browser it starts."""

    def __init__(self) -> None:
        self.launches = 0
        self.browsers: list[FakeBrowser] = []
        self.launch_error: str | None = None
        self.render_error: str | None = None
        self.load_delay = 0.0
        self.pdf_bytes = FAKE_PDF

    async def __call__(self, config: object) -> FakeBrowser:
        await asyncio.sleep(0)
        if self.launch_error is not None:
            raise RuntimeError(self.launch_error)
        self.launches += 1
        browser = FakeBrowser(self)
        self.browsers.append(browser)
        return browser

    @property
    def pages(self) -> list[FakePage]:
        return [page for browser in self.browsers for page in browser.pages]

    @property
    def last_page(self) -> FakePage:
        return self.pages[-1]


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(runtime=RuntimeConfig(log_dir=tmp_path / "logs"))


@pytest.fixture
def engine_manager(app_config: AppConfig, fake_engine: FakeEngine) -> RenderEngineManager:
    return RenderEngineManager(app_config.engine, launcher=fake_engine)


@pytest.fixture
def service(app_config: AppConfig, engine_manager: RenderEngineManager) -> ConversionService:
    return ConversionService(app_config, engine=engine_manager)
