from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from actions import Action
from dispatcher import dispatch
from report import SessionReport, StepOutcome, build_report
from session import BrowserLauncher, Session, open_session
from session_common import BrowserServiceError, FatalSessionError


logger = logging.getLogger(__name__)


async def run_sequence(
    session: Session,
    actions: Sequence[Action],
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[StepOutcome]:
    """Dispatch every action in order, one at a time, against one page.

    A failed step is recorded and the run moves on; the returned list always
    has one outcome per action. After each step the executor pauses for the
    action's settle delay before starting the next one.
    """
    outcomes: list[StepOutcome] = []
    total = len(actions)
    for idx, action in enumerate(actions):
        logger.debug("step %d/%d", idx + 1, total)
        outcome = await dispatch(session, action)
        outcomes.append(outcome)

        delay_ms = action.settle_delay_ms
        if delay_ms > 0:
            await sleep(delay_ms / 1000.0)
    return outcomes


async def run_interaction(
    url: str,
    actions: Sequence[Action],
    *,
    screenshot: bool = False,
    wait_for_navigation: bool = False,
    launcher: BrowserLauncher | None = None,
) -> SessionReport:
    if wait_for_navigation:
        # Accepted for compatibility with existing callers; it has no effect.
        logger.debug("waitForNavigation requested for %s; ignored", url)

    async with open_session(url, launcher=launcher) as session:
        try:
            outcomes = await run_sequence(session, actions)
            return await build_report(session, outcomes, screenshot=screenshot)
        except BrowserServiceError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("session for %s died", url)
            raise FatalSessionError(str(exc) or type(exc).__name__) from exc
