"""Shared fixtures: temporary output dirs, mock model and a fake browser."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from guidesmith.config import Settings
from guidesmith.main import build_workflow


class FakePage:
    def __init__(self, browser):
        self.browser = browser
        self.url = None
        self.closed = False

    async def goto(self, url, wait_until=None):
        await asyncio.sleep(0)
        self.url = url
        self.browser.navigations.append((url, wait_until))
        if "unreachable" in url:
            raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

    async def content(self):
        return (
            "<html><head><title>Composting</title></head><body><article>"
            f"<h1>Notes from {self.url}</h1>"
            "<p>Turn the pile weekly and keep it as damp as a wrung-out sponge.</p>"
            "</article></body></html>"
        )

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.pages = []
        self.navigations = []
        self.closed = False
        self.crashed = False

    async def new_page(self):
        if self.crashed:
            raise PlaywrightError("Target page, context or browser has been closed")
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowserFactory:
    """Counts launches; yields control during launch to expose init races."""

    def __init__(self):
        self.launched = []

    async def __call__(self):
        await asyncio.sleep(0.01)
        browser = FakeBrowser()
        self.launched.append(browser)
        return browser


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every output directory at a temp dir."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        research_output_dir=tmp_path / "research",
        outline_output_dir=tmp_path / "outlines",
        document_output_dir=tmp_path / "documents",
        draft_workers=2,
        log_json=False,
    )


@pytest.fixture
def browser_factory():
    return FakeBrowserFactory()


@pytest.fixture
async def workflow(settings, browser_factory):
    """Workflow wired with the mock model and fake browser."""
    wf = build_workflow(settings, browser_factory=browser_factory)
    await wf.storage.ensure_directories()
    yield wf
    await wf.drafts.stop()
    await wf.research.shutdown()
