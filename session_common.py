from __future__ import annotations

import json
import logging
import os
import re
from typing import Any


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


SERVICE_NAME = "playwright-service"
VIEWPORT_WIDTH = 1280
VIEWPORT_HEIGHT = 800
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
]
HEADLESS = _env_flag("HEADLESS", True)
NAVIGATION_TIMEOUT_MS = _env_int("NAVIGATION_TIMEOUT_MS", 30000)
EXTRA_BROWSER_ARGS = os.environ.get("BROWSER_ARGS", "").split()

DEFAULT_SETTLE_DELAY_MS = 100
DEFAULT_WAIT_TIMEOUT_MS = 5000
DEFAULT_SUBMIT_WAIT_MS = 2000

LOG_STRING_LIMIT = 200
CAPTURE_FIELDS = frozenset({"screenshot", "image", "pdf"})


class BrowserServiceError(RuntimeError):
    """Base class for failures surfaced to the caller of a browser operation."""

    status_code = 500


class ValidationError(BrowserServiceError):
    """Raised when required input is missing, before any browser is launched."""

    status_code = 400


class NavigationError(BrowserServiceError):
    """Raised when the initial page load fails or times out."""


class StepError(BrowserServiceError):
    """Raised inside a single action; always converted into a failed outcome."""


class CaptureError(BrowserServiceError):
    """Raised when an explicitly requested screenshot or PDF cannot be produced."""


class FatalSessionError(BrowserServiceError):
    """Raised for any other failure that kills the session mid-request."""


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _sanitize_for_log(value: Any, *, key: str | None = None) -> Any:
    """Shrink a report for printing: base64 captures and long markup become summaries."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    if isinstance(value, dict):
        return {str(k): _sanitize_for_log(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_for_log(item) for item in value]
    if isinstance(value, str):
        if key in CAPTURE_FIELDS and value:
            return f"<base64 len={len(value)}>"
        if len(value) > LOG_STRING_LIMIT:
            return f"<str len={len(value)} head={value[:40]!r}>"
        return value
    if isinstance(value, bytes):
        return f"<bytes len={len(value)}>"
    return value


def _dump_json(value: Any) -> str:
    return json.dumps(_sanitize_for_log(value), ensure_ascii=False, indent=2, default=str)


def _launch_kwargs(*, headless: bool) -> dict[str, Any]:
    return {
        "headless": headless,
        "args": list(CHROMIUM_ARGS) + list(EXTRA_BROWSER_ARGS),
    }


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


KEY_ALIASES = {
    "enter": "Enter",
    "return": "Enter",
    "esc": "Escape",
    "tab": "Tab",
    "space": "Space",
    "backspace": "Backspace",
    "delete": "Delete",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "ctrl": "Control",
    "control": "Control",
    "alt": "Alt",
    "shift": "Shift",
    "cmd": "Meta",
    "meta": "Meta",
}


def _normalize_key(raw_key: Any) -> str:
    """Map a loose key name such as ``enter`` or ``ctrl+a`` to Playwright's spelling."""
    key = str(raw_key).strip()
    if len(key) <= 1:
        return key
    # Playwright key names are case sensitive; unknown names pass through unchanged.
    return "+".join(KEY_ALIASES.get(piece.strip().lower(), piece.strip()) for piece in key.split("+"))
