from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence

from session_common import CaptureError

if TYPE_CHECKING:
    from session import Session


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    action: Any
    success: bool
    fields: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def ok(cls, action: str, **fields: Any) -> StepOutcome:
        return cls(action=action, success=True, fields=fields)

    @classmethod
    def failed(cls, action: Any, error: str, **fields: Any) -> StepOutcome:
        return cls(action=action, success=False, fields=fields, error=error)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"action": self.action}
        out.update(self.fields)
        if self.error is not None:
            out["error"] = self.error
        out["success"] = self.success
        return out


@dataclass(frozen=True)
class SessionReport:
    results: tuple[StepOutcome, ...]
    final_url: str
    title: str
    screenshot: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [outcome.to_dict() for outcome in self.results],
            "finalUrl": self.final_url,
            "title": self.title,
            "screenshot": self.screenshot,
        }


async def build_report(
    session: Session,
    outcomes: Sequence[StepOutcome] | None,
    *,
    screenshot: bool = False,
) -> SessionReport:
    """Read the page's final state and assemble the run's report.

    The capture covers the visible viewport only. A failed capture raises
    CaptureError instead of returning a report without the image.
    """
    page = session.page
    final_url = page.url
    title = await page.title()

    screenshot_b64: str | None = None
    if screenshot:
        try:
            raw = await page.screenshot(full_page=False)
        except Exception as exc:  # noqa: BLE001
            raise CaptureError(f"screenshot failed: {exc}") from exc
        screenshot_b64 = base64.b64encode(raw).decode("ascii")

    results = tuple(outcomes or ())
    failed = sum(1 for outcome in results if not outcome.success)
    logger.info("report for %s: %d steps, %d failed, final url %s", session.target_url, len(results), failed, final_url)
    return SessionReport(
        results=results,
        final_url=final_url,
        title=title,
        screenshot=screenshot_b64,
    )
