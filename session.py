from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable

from playwright.async_api import Browser, Page, async_playwright

from session_common import (
    HEADLESS,
    NAVIGATION_TIMEOUT_MS,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
    FatalSessionError,
    NavigationError,
    _launch_kwargs,
)


logger = logging.getLogger(__name__)

# Returns (driver, browser). The driver may be None when the browser is not
# owned by a Playwright instance started here.
BrowserLauncher = Callable[[bool], Awaitable[tuple[Any, Browser]]]


@dataclass
class Session:
    """One browser plus one page, owned by a single request."""

    target_url: str
    browser: Browser
    page: Page
    _driver: Any = None
    released: bool = False


async def _launch_chromium(headless: bool) -> tuple[Any, Browser]:
    driver = await async_playwright().start()
    try:
        browser = await driver.chromium.launch(**_launch_kwargs(headless=headless))
    except Exception:
        await driver.stop()
        raise
    return driver, browser


async def acquire(
    target_url: str,
    *,
    launcher: BrowserLauncher | None = None,
    headless: bool | None = None,
    timeout_ms: int | None = None,
) -> Session:
    """Launch a fresh browser, open a page and navigate it to ``target_url``.

    The returned session has finished a network-idle navigation. If the
    navigation fails, everything launched so far is closed and
    NavigationError is raised.
    """
    launch = launcher or _launch_chromium
    if headless is None:
        headless = HEADLESS
    if timeout_ms is None:
        timeout_ms = NAVIGATION_TIMEOUT_MS

    try:
        driver, browser = await launch(headless)
    except Exception as exc:  # noqa: BLE001
        raise FatalSessionError(f"could not launch browser: {exc}") from exc

    session: Session | None = None
    try:
        page = await browser.new_page(viewport={"width": VIEWPORT_WIDTH, "height": VIEWPORT_HEIGHT})
        session = Session(target_url=target_url, browser=browser, page=page, _driver=driver)
    except Exception as exc:  # noqa: BLE001
        await _close_quietly(browser, driver)
        raise FatalSessionError(f"could not open page: {exc}") from exc

    logger.info("navigating to %s", target_url)
    try:
        await session.page.goto(target_url, wait_until="networkidle", timeout=timeout_ms)
    except Exception as exc:  # noqa: BLE001
        await release(session)
        raise NavigationError(f"navigation to {target_url} failed: {exc}") from exc
    return session


async def _close_quietly(browser: Browser | None, driver: Any) -> None:
    if browser is not None:
        try:
            await browser.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("browser close failed: %s", exc)
    if driver is not None:
        try:
            await driver.stop()
        except Exception as exc:  # noqa: BLE001
            logger.warning("playwright stop failed: %s", exc)


async def release(session: Session) -> None:
    if session.released:
        return
    session.released = True
    await _close_quietly(session.browser, session._driver)
    logger.debug("released session for %s", session.target_url)


@asynccontextmanager
async def open_session(target_url: str, **kwargs: Any) -> AsyncIterator[Session]:
    session = await acquire(target_url, **kwargs)
    try:
        yield session
    finally:
        await release(session)
