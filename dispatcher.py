from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from actions import (
    Action,
    CheckAction,
    ClickAction,
    EvaluateAction,
    FillAction,
    GetAttributeAction,
    GetTextAction,
    HoverAction,
    PressAction,
    ScrollAction,
    SelectAction,
    UncheckAction,
    UnknownAction,
    WaitAction,
    render_action_line,
)
from report import StepOutcome
from session_common import DEFAULT_WAIT_TIMEOUT_MS, StepError, _normalize_key, _snake_case

if TYPE_CHECKING:
    from session import Session


logger = logging.getLogger(__name__)

UNKNOWN_ACTION_MESSAGE = "Unknown action type"

SCROLL_INTO_VIEW_JS = "(sel) => { document.querySelector(sel)?.scrollIntoView({ behavior: 'smooth' }); }"


def _require_selector(action: Action) -> str:
    if not action.selector:
        raise StepError(f"{action.type_name} requires a selector")
    return action.selector


def _click_kwargs(options: dict[str, Any]) -> dict[str, Any]:
    return {_snake_case(str(key)): value for key, value in options.items()}


def _wait_ms(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise StepError(f"wait value must be a number of milliseconds, got {value!r}") from exc


async def _perform(session: Session, action: Action) -> StepOutcome:
    page = session.page

    if isinstance(action, ClickAction):
        selector = _require_selector(action)
        await page.click(selector, **_click_kwargs(action.options))
        return StepOutcome.ok("click", selector=selector)

    if isinstance(action, FillAction):
        selector = _require_selector(action)
        if action.value is None:
            raise StepError(f"{action.type_name} requires a value")
        await page.fill(selector, str(action.value))
        return StepOutcome.ok("fill", selector=selector, value=action.value)

    if isinstance(action, SelectAction):
        selector = _require_selector(action)
        await page.select_option(selector, action.value)
        return StepOutcome.ok("select", selector=selector, value=action.value)

    if isinstance(action, CheckAction):
        selector = _require_selector(action)
        await page.check(selector)
        return StepOutcome.ok("check", selector=selector)

    if isinstance(action, UncheckAction):
        selector = _require_selector(action)
        await page.uncheck(selector)
        return StepOutcome.ok("uncheck", selector=selector)

    if isinstance(action, HoverAction):
        selector = _require_selector(action)
        await page.hover(selector)
        return StepOutcome.ok("hover", selector=selector)

    if isinstance(action, ScrollAction):
        selector = _require_selector(action)
        await page.evaluate(SCROLL_INTO_VIEW_JS, selector)
        return StepOutcome.ok("scroll", selector=selector)

    if isinstance(action, WaitAction):
        if action.selector:
            timeout = action.options.get("timeout") or DEFAULT_WAIT_TIMEOUT_MS
            await page.wait_for_selector(action.selector, timeout=timeout)
        elif action.value is not None and action.value != "":
            await page.wait_for_timeout(_wait_ms(action.value))
        return StepOutcome.ok("wait", selector=action.selector)

    if isinstance(action, GetTextAction):
        selector = _require_selector(action)
        text = await page.text_content(selector)
        return StepOutcome.ok("getText", selector=selector, text=text)

    if isinstance(action, GetAttributeAction):
        selector = _require_selector(action)
        if not action.attribute:
            raise StepError("getAttribute requires an attribute name in value")
        attr = await page.get_attribute(selector, action.attribute)
        return StepOutcome.ok("getAttribute", selector=selector, attribute=action.attribute, value=attr)

    if isinstance(action, EvaluateAction):
        if not action.expression:
            raise StepError("evaluate requires an expression in value")
        result = await page.evaluate(action.expression)
        return StepOutcome.ok("evaluate", result=result)

    if isinstance(action, PressAction):
        selector = _require_selector(action)
        if not action.key:
            raise StepError("press requires a key name in value")
        await page.press(selector, _normalize_key(action.key))
        return StepOutcome.ok("press", selector=selector, key=action.key)

    if isinstance(action, UnknownAction):
        return StepOutcome.failed(action.raw_type, UNKNOWN_ACTION_MESSAGE)

    raise StepError(f"no handler for {type(action).__name__}")


def _describe(action: Action) -> str:
    try:
        return render_action_line(action)
    except Exception:  # noqa: BLE001
        return str(action.type_name)


async def dispatch(session: Session, action: Action) -> StepOutcome:
    """Run one action against the session's page.

    Never raises: any failure of the underlying page operation is returned
    as a failed outcome echoing the action's type and selector.
    """
    try:
        outcome = await _perform(session, action)
    except Exception as exc:  # noqa: BLE001
        message = str(exc) or type(exc).__name__
        logger.warning("step failed: %s (%s)", _describe(action), message)
        return StepOutcome.failed(action.type_name, message, selector=action.selector)

    line = _describe(action)
    if outcome.success:
        logger.info("step ok: %s", line)
    else:
        logger.warning("step rejected: %s (%s)", line, outcome.error)
    return outcome
