from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import session as session_module
from session import Session


@dataclass
class FakeElement:
    text: str | None = ""
    attrs: dict[str, str] = field(default_factory=dict)
    value: Any = None
    checked: bool = False
    hovered: bool = False
    scrolled: bool = False
    clicks: int = 0
    keys: list[str] = field(default_factory=list)
    navigates_to: str | None = None
    options: list[str] | None = None


class FakePage:
    """In-memory stand-in for a Playwright page keyed by exact selector strings."""

    def __init__(
        self,
        elements: dict[str, FakeElement] | None = None,
        *,
        title: str = "Fake Page",
        html: str = "<html><head><title>Fake Page</title></head><body><p>hi</p></body></html>",
    ) -> None:
        self.elements = elements if elements is not None else {}
        self.url = "about:blank"
        self._title = title
        self.html = html
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.eval_results: dict[str, Any] = {}
        self.goto_error: Exception | None = None
        self.title_error: Exception | None = None
        self.screenshot_error: Exception | None = None
        self.pdf_error: Exception | None = None
        self.slept_ms: list[int] = []

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def _element(self, selector: str) -> FakeElement:
        el = self.elements.get(selector)
        if el is None:
            raise PlaywrightTimeoutError(
                f'Timeout 30000ms exceeded.\nwaiting for locator("{selector}")'
            )
        return el

    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    async def goto(self, url: str, **kwargs: Any) -> None:
        self._record("goto", url, **kwargs)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def click(self, selector: str, **kwargs: Any) -> None:
        self._record("click", selector, **kwargs)
        el = self._element(selector)
        el.clicks += 1
        if el.navigates_to:
            self.url = el.navigates_to

    async def fill(self, selector: str, value: str) -> None:
        self._record("fill", selector, value)
        self._element(selector).value = value

    async def select_option(self, selector: str, value: Any) -> list[str]:
        self._record("select_option", selector, value)
        el = self._element(selector)
        if el.options is not None and value not in el.options:
            raise PlaywrightError(f"options not found: {value}")
        el.value = value
        return [value]

    async def check(self, selector: str) -> None:
        self._record("check", selector)
        self._element(selector).checked = True

    async def uncheck(self, selector: str) -> None:
        self._record("uncheck", selector)
        self._element(selector).checked = False

    async def hover(self, selector: str) -> None:
        self._record("hover", selector)
        self._element(selector).hovered = True

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self._record("evaluate", expression, arg)
        if "scrollIntoView" in expression and isinstance(arg, str):
            el = self.elements.get(arg)
            if el is not None:
                el.scrolled = True
            return None
        if expression not in self.eval_results:
            raise PlaywrightError(f"ReferenceError: {expression} is not defined")
        return self.eval_results[expression]

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> FakeElement:
        self._record("wait_for_selector", selector, **kwargs)
        return self._element(selector)

    async def wait_for_timeout(self, timeout: float) -> None:
        self._record("wait_for_timeout", timeout)
        self.slept_ms.append(timeout)

    async def text_content(self, selector: str) -> str | None:
        self._record("text_content", selector)
        return self._element(selector).text

    async def get_attribute(self, selector: str, name: str) -> str | None:
        self._record("get_attribute", selector, name)
        return self._element(selector).attrs.get(name)

    async def press(self, selector: str, key: str) -> None:
        self._record("press", selector, key)
        self._element(selector).keys.append(key)

    async def title(self) -> str:
        self._record("title")
        if self.title_error is not None:
            raise self.title_error
        return self._title

    async def content(self) -> str:
        self._record("content")
        return self.html

    async def screenshot(self, **kwargs: Any) -> bytes:
        self._record("screenshot", **kwargs)
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return b"\x89PNG\r\n\x1a\nfake-image"

    async def pdf(self, **kwargs: Any) -> bytes:
        self._record("pdf", **kwargs)
        if self.pdf_error is not None:
            raise self.pdf_error
        return b"%PDF-1.4 fake"


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.close_count = 0
        self.close_error: Exception | None = None
        self.page_kwargs: dict[str, Any] = {}

    async def new_page(self, **kwargs: Any) -> FakePage:
        self.page_kwargs = kwargs
        return self.page

    async def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


class FakeLauncher:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.browsers: list[FakeBrowser] = []
        self.headless_flags: list[bool] = []

    async def __call__(self, headless: bool) -> tuple[None, FakeBrowser]:
        self.headless_flags.append(headless)
        browser = FakeBrowser(self.page)
        self.browsers.append(browser)
        return None, browser

    @property
    def browser(self) -> FakeBrowser:
        return self.browsers[-1]


@pytest.fixture
def search_page() -> FakePage:
    return FakePage(
        {
            "#q": FakeElement(),
            "#go": FakeElement(navigates_to="https://example.test/results?q=hello"),
            "h1": FakeElement(text="Search"),
            "a.docs": FakeElement(text="Docs", attrs={"href": "/docs"}),
            "#agree": FakeElement(),
            "#country": FakeElement(options=["fr", "de"]),
            "#menu": FakeElement(),
            "#footer": FakeElement(),
        },
        title="Search",
    )


@pytest.fixture
def launcher(search_page: FakePage) -> FakeLauncher:
    return FakeLauncher(search_page)


@pytest.fixture
def fake_session(search_page: FakePage) -> Session:
    search_page.url = "https://example.test/"
    return Session(target_url="https://example.test/", browser=FakeBrowser(search_page), page=search_page)


@pytest.fixture
def patched_launcher(monkeypatch: pytest.MonkeyPatch, launcher: FakeLauncher) -> FakeLauncher:
    """Route the default Chromium launcher to the fake browser."""
    monkeypatch.setattr(session_module, "_launch_chromium", launcher)
    return launcher
