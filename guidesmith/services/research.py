"""Research planning and page capture through a shared headless browser."""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, List, Optional, Protocol

import trafilatura
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from guidesmith.exceptions import CaptureError
from guidesmith.schemas import ResearchDocumentMetadata, ResearchQueryPlan, SessionState, utcnow_iso
from guidesmith.services.llm import LlmService
from guidesmith.services.storage import StorageService

logger = logging.getLogger(__name__)


class BrowserHandle(Protocol):
    async def new_page(self): ...

    async def close(self) -> None: ...


BrowserFactory = Callable[[], Awaitable[BrowserHandle]]


class ChromiumBrowser:
    """Playwright Chromium instance together with the driver that owns it."""

    def __init__(self, playwright: Playwright, browser: Browser):
        self._playwright = playwright
        self._browser = browser

    @classmethod
    async def launch(cls, headless: bool = True) -> "ChromiumBrowser":
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=headless)
        except PlaywrightError:
            await playwright.stop()
            raise
        return cls(playwright, browser)

    async def new_page(self):
        return await self._browser.new_page()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


def describe_scope(session: SessionState) -> str:
    """Scope description used for research planning; the session id when unscoped."""
    if session.scope:
        return f"{session.scope.topic} with depth {session.scope.depth_level}"
    return session.id


class ResearchService:
    """Plans research queries and captures pages with one lazily started browser.

    Captures run concurrently on separate pages of the same browser. The
    browser is created at most once per lifetime, guarded by a lock, and is
    re-created after ``shutdown`` or once it can no longer open pages.
    """

    def __init__(
        self,
        llm: LlmService,
        storage: StorageService,
        browser_factory: Optional[BrowserFactory] = None,
        headless: bool = True,
    ):
        self.llm = llm
        self.storage = storage
        self._browser_factory = browser_factory or (lambda: ChromiumBrowser.launch(headless=headless))
        self._browser: Optional[BrowserHandle] = None
        self._browser_lock = asyncio.Lock()

    @property
    def browser_running(self) -> bool:
        return self._browser is not None

    async def get_query_plan(self, session: SessionState) -> List[ResearchQueryPlan]:
        plan = await self.llm.plan_research_queries(describe_scope(session))
        logger.info(
            "Generated research plan",
            extra={"session_id": session.id, "total_queries": len(plan)},
        )
        return plan

    async def capture_query_result(self, plan: ResearchQueryPlan, url: str) -> ResearchDocumentMetadata:
        browser = await self._get_browser()
        try:
            page = await browser.new_page()
        except PlaywrightError as e:
            logger.warning(f"Research browser unusable, discarding it: {e}")
            await self._discard_browser(browser)
            raise CaptureError(url, f"Browser unavailable: {e}") from e

        logger.info("Capturing research page", extra={"url": url, "query": plan.query})
        try:
            try:
                await page.goto(url, wait_until="domcontentloaded")
                content = await page.content()
            except PlaywrightError as e:
                logger.warning(f"Capture failed for {url}: {e}")
                raise CaptureError(url, str(e)) from e

            extract = await asyncio.to_thread(
                trafilatura.extract,
                content,
                url=url,
                include_comments=False,
                include_images=False,
            )

            metadata = ResearchDocumentMetadata(
                id=str(uuid.uuid4()),
                url=url,
                source_query=plan.query,
                captured_at=utcnow_iso(),
                tags=list(plan.expected_artifacts),
            )
            return await self.storage.persist_research_artifact(metadata, content, extract)
        finally:
            await page.close()

    async def shutdown(self) -> None:
        async with self._browser_lock:
            if self._browser is None:
                return
            browser, self._browser = self._browser, None
            await browser.close()
            logger.info("Research browser closed")

    async def _discard_browser(self, browser: BrowserHandle) -> None:
        """Drop a dead browser so the next capture launches a fresh one."""
        async with self._browser_lock:
            if self._browser is not browser:
                return
            self._browser = None
        try:
            await browser.close()
        except PlaywrightError as e:
            logger.warning(f"Closing discarded research browser failed: {e}")

    async def _get_browser(self) -> BrowserHandle:
        if self._browser is not None:
            return self._browser
        async with self._browser_lock:
            if self._browser is None:
                self._browser = await self._browser_factory()
                logger.info("Research browser started")
            return self._browser
