"""Lifecycle of the headless Chromium engine shared by conversions.

One ``RenderEngineManager`` owns at most one live browser. Conversions borrow
an isolated page through :meth:`RenderEngineManager.acquire_context`; the
manager counts borrowed pages so that :meth:`RenderEngineManager.close`
can wait for them to be released before shutting the browser down.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Protocol

from playwright.async_api import Browser, Playwright, async_playwright

from .config import EngineConfig
from .errors import RenderError

logger = logging.getLogger(__name__)


class RenderContext(Protocol):
    async def set_content(self, html: str, **kwargs: Any) -> None:  # pragma: no cover - interface
        ...

    async def pdf(self, **kwargs: Any) -> bytes:  # pragma: no cover - interface
        ...

    async def close(self) -> None:  # pragma: no cover - interface
        ...


class EngineHandle(Protocol):
    async def new_context(self) -> RenderContext:  # pragma: no cover - interface
        ...

    def is_connected(self) -> bool:  # pragma: no cover - interface
        ...

    async def close(self) -> None:  # pragma: no cover - interface
        ...


Launcher = Callable[[EngineConfig], Awaitable[EngineHandle]]


class ChromiumHandle:
    """A launched Chromium browser together with the Playwright driver running it."""

    def __init__(self, playwright: Playwright, browser: Browser) -> None:
        self._playwright = playwright
        self._browser = browser

    async def new_context(self) -> RenderContext:
        return await self._browser.new_page()

    def is_connected(self) -> bool:
        return self._browser.is_connected()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def launch_chromium(config: EngineConfig) -> EngineHandle:
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=config.headless,
            args=list(config.launch_args),
            executable_path=config.executable_path,
        )
    except BaseException:
        await playwright.stop()
        raise
    return ChromiumHandle(playwright, browser)


class RenderEngineManager:
    def __init__(self, config: EngineConfig | None = None, *, launcher: Launcher | None = None) -> None:
        self._config = config or EngineConfig()
        self._launcher = launcher or launch_chromium
        self._handle: EngineHandle | None = None
        self._active = 0
        self._closing = False
        self._condition = asyncio.Condition()

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    @property
    def active_contexts(self) -> int:
        return self._active

    async def initialize(self) -> EngineHandle:
        async with self._condition:
            return await self._ensure_handle()

    async def _ensure_handle(self) -> EngineHandle:
        # caller holds self._condition
        if self._handle is not None and self._handle.is_connected():
            return self._handle
        if self._handle is not None:
            logger.warning("Render engine disconnected, relaunching")
            await self._shutdown_handle()
        logger.info("Launching headless render engine")
        try:
            self._handle = await self._launcher(self._config)
        except Exception as exc:
            raise RenderError("ENGINE_LAUNCH", f"Failed to launch render engine: {exc}") from exc
        return self._handle

    async def _shutdown_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            await handle.close()
        except Exception:
            logger.exception("Error while closing render engine")

    async def close(self) -> None:
        """Stop accepting new contexts, wait for borrowed ones, then stop the engine."""

        async with self._condition:
            if self._handle is None and self._active == 0:
                return
            self._closing = True
            try:
                if self._active:
                    logger.info("Waiting for %d render context(s) before shutdown", self._active)
                await self._condition.wait_for(lambda: self._active == 0)
                await self._shutdown_handle()
                logger.info("Render engine closed")
            finally:
                self._closing = False

    @asynccontextmanager
    async def acquire_context(self) -> AsyncIterator[RenderContext]:
        async with self._condition:
            if self._closing:
                raise RenderError("ENGINE_CLOSING", "Render engine is shutting down")
            handle = await self._ensure_handle()
            self._active += 1
        try:
            context = await handle.new_context()
        except BaseException:
            await self._release()
            raise
        try:
            yield context
        finally:
            try:
                await context.close()
            except Exception:
                logger.warning("Failed to close render context", exc_info=True)
            await self._release()

    async def _release(self) -> None:
        async with self._condition:
            self._active -= 1
            self._condition.notify_all()

    async def __aenter__(self) -> RenderEngineManager:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()


__all__ = [
    "ChromiumHandle",
    "EngineHandle",
    "Launcher",
    "RenderContext",
    "RenderEngineManager",
    "launch_chromium",
]
