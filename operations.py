from __future__ import annotations

import base64
import logging
from typing import Any, Sequence

from actions import parse_action
from dispatcher import dispatch
from html_preprocessor import clean_page_markup
from session import BrowserLauncher, open_session
from session_common import (
    DEFAULT_SUBMIT_WAIT_MS,
    CaptureError,
    FatalSessionError,
    ValidationError,
)


logger = logging.getLogger(__name__)

SCREENSHOT_TYPES = {"png", "jpeg"}
FORM_FIELD_TYPES = {"fill", "click", "select"}


def _fatal(exc: Exception) -> FatalSessionError:
    return FatalSessionError(str(exc) or type(exc).__name__)


async def scrape(
    url: str,
    *,
    wait_for: int | None = None,
    selector: str | None = None,
    clean: bool = False,
    launcher: BrowserLauncher | None = None,
) -> dict[str, Any]:
    async with open_session(url, launcher=launcher) as session:
        page = session.page
        try:
            if wait_for:
                await page.wait_for_timeout(wait_for)
            if selector:
                await page.wait_for_selector(selector)
            content = await page.content()
            title = await page.title()
        except Exception as exc:  # noqa: BLE001
            raise _fatal(exc) from exc

    if clean:
        content = clean_page_markup(content)
    return {"title": title, "content": content, "url": url}


async def capture_screenshot(
    url: str,
    *,
    full_page: bool = True,
    image_type: str = "png",
    launcher: BrowserLauncher | None = None,
) -> dict[str, Any]:
    if image_type not in SCREENSHOT_TYPES:
        raise ValidationError(f"type must be one of {sorted(SCREENSHOT_TYPES)}")

    async with open_session(url, launcher=launcher) as session:
        try:
            raw = await session.page.screenshot(full_page=full_page, type=image_type)
        except Exception as exc:  # noqa: BLE001
            raise CaptureError(f"screenshot failed: {exc}") from exc

    return {"image": base64.b64encode(raw).decode("ascii"), "type": image_type, "url": url}


async def export_pdf(
    url: str,
    *,
    page_format: str = "A4",
    launcher: BrowserLauncher | None = None,
) -> dict[str, Any]:
    async with open_session(url, launcher=launcher) as session:
        try:
            raw = await session.page.pdf(format=page_format)
        except Exception as exc:  # noqa: BLE001
            raise CaptureError(f"pdf export failed: {exc}") from exc

    return {"pdf": base64.b64encode(raw).decode("ascii"), "url": url}


async def evaluate_script(
    url: str,
    script: str,
    *,
    wait_for: int | None = None,
    launcher: BrowserLauncher | None = None,
) -> Any:
    if not script:
        raise ValidationError("script is required")

    async with open_session(url, launcher=launcher) as session:
        page = session.page
        try:
            if wait_for:
                await page.wait_for_timeout(wait_for)
            return await page.evaluate(script)
        except Exception as exc:  # noqa: BLE001
            raise _fatal(exc) from exc


async def fill_form(
    url: str,
    fields: Sequence[dict[str, Any]],
    *,
    submit_selector: str | None = None,
    wait_after_submit: int = DEFAULT_SUBMIT_WAIT_MS,
    launcher: BrowserLauncher | None = None,
) -> dict[str, Any]:
    """Fill fields in order, optionally submit, and return the resulting page.

    Unlike an action-sequence run, the first failing field aborts the request.
    """
    actions = []
    for idx, raw in enumerate(fields):
        if not isinstance(raw, dict):
            raise ValidationError(f"fields[{idx}] must be an object")
        field_type = raw.get("type") or "fill"
        if field_type not in FORM_FIELD_TYPES:
            logger.warning("skipping form field %d with unsupported type %r", idx, field_type)
            continue
        actions.append(
            parse_action(
                {"type": field_type, "selector": raw.get("selector"), "value": raw.get("value")},
                index=idx,
            )
        )

    async with open_session(url, launcher=launcher) as session:
        page = session.page
        for action in actions:
            outcome = await dispatch(session, action)
            if not outcome.success:
                raise FatalSessionError(outcome.error or f"{action.type_name} failed")

        try:
            if submit_selector:
                await page.click(submit_selector)
                await page.wait_for_timeout(wait_after_submit)
            content = await page.content()
            url_after = page.url
        except Exception as exc:  # noqa: BLE001
            raise _fatal(exc) from exc

    return {"content": content, "url": url_after}
