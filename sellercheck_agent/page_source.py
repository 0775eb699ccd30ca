from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import Settings
from .errors import NavigationError

logger = logging.getLogger(__name__)


class PageSource:
    """Loads URLs into pages and answers DOM queries against them.

    Handles are opaque to callers: a page, a nested document or an element can
    be passed wherever a query root is expected.
    """

    async def open_page(self) -> Any:
        raise NotImplementedError

    async def close_page(self, page: Any) -> None:
        raise NotImplementedError

    async def navigate(self, page: Any, url: str) -> None:
        """Load `url` into `page`. Raises NavigationError when the load fails."""
        raise NotImplementedError

    async def query_selector(self, handle: Any, selector: str) -> Any | None:
        raise NotImplementedError

    async def query_selector_all(self, handle: Any, selector: str) -> list[Any]:
        raise NotImplementedError

    async def read_text(self, element: Any) -> str | None:
        raise NotImplementedError

    async def read_attribute(self, element: Any, name: str) -> str | None:
        raise NotImplementedError

    async def click(self, element: Any) -> None:
        raise NotImplementedError

    async def remove(self, element: Any) -> None:
        raise NotImplementedError

    async def nested_document(self, element: Any) -> Any | None:
        raise NotImplementedError

    async def settle(self, page: Any) -> None:
        """Wait for `page` to finish re-rendering after an in-page interaction."""
        raise NotImplementedError


@asynccontextmanager
async def scoped_page(source: PageSource) -> AsyncIterator[Any]:
    page = await source.open_page()
    try:
        yield page
    finally:
        await source.close_page(page)


class PlaywrightPageSource(PageSource):
    """PageSource backed by a single headless Chromium context.

    Use as an async context manager; the browser lives for one assessment.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._playwright = None
        self._browser = None
        self._context = None

    async def __aenter__(self) -> PlaywrightPageSource:
        launch_kwargs: dict[str, Any] = {
            "headless": self.settings.headless,
            "args": [
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        }
        proxy = self.settings.proxy
        if proxy is not None:
            launch_kwargs["proxy"] = {
                "server": proxy.server,
                **({"username": proxy.username} if proxy.username else {}),
                **({"password": proxy.password} if proxy.password else {}),
            }

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(**launch_kwargs)
            self._context = await self._browser.new_context(
                viewport={"width": 1365, "height": 768},
                user_agent=self.settings.user_agent,
                java_script_enabled=True,
                ignore_https_errors=True,
            )
        except BaseException:
            await self._shutdown()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._shutdown()

    async def _shutdown(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def open_page(self):
        if self._context is None:
            raise RuntimeError("PlaywrightPageSource used outside of its 'async with' block")
        page = await self._context.new_page()
        page.set_default_timeout(self.settings.navigation_timeout_ms)
        return page

    async def close_page(self, page) -> None:
        await page.close()

    async def navigate(self, page, url: str) -> None:
        try:
            await page.goto(url, wait_until="load", timeout=self.settings.navigation_timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(url, e.message) from e

    async def query_selector(self, handle, selector: str):
        return await handle.query_selector(selector)

    async def query_selector_all(self, handle, selector: str):
        return await handle.query_selector_all(selector)

    async def read_text(self, element) -> str | None:
        return await element.text_content()

    async def read_attribute(self, element, name: str) -> str | None:
        return await element.get_attribute(name)

    async def click(self, element) -> None:
        await element.click()

    async def remove(self, element) -> None:
        await element.evaluate("(el) => el.remove()")

    async def nested_document(self, element):
        return await element.content_frame()

    async def settle(self, page) -> None:
        # Best-effort: listings that keep polling never reach network idle.
        try:
            await page.wait_for_load_state("networkidle", timeout=self.settings.settle_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Page did not go idle within %dms", self.settings.settle_timeout_ms)
