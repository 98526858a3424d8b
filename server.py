"""
HTTP surface for the browser automation service.

Every request gets its own browser; nothing is pooled or shared between
requests, and there is no cap on how many run at once.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

import operations
from actions import parse_actions
from executor import run_interaction
from session_common import DEFAULT_SUBMIT_WAIT_MS, SERVICE_NAME, BrowserServiceError


logger = logging.getLogger(__name__)

app = FastAPI(title=SERVICE_NAME)


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(min_length=1)


class ScrapeRequest(_Request):
    wait_for: int | None = Field(default=None, alias="waitFor")
    selector: str | None = None
    clean: bool = False


class ScreenshotRequest(_Request):
    full_page: bool = Field(default=True, alias="fullPage")
    type: str = "png"


class PdfRequest(_Request):
    format: str = "A4"


class ExecuteRequest(_Request):
    script: str = Field(min_length=1)
    wait_for: int | None = Field(default=None, alias="waitFor")


class FillFormRequest(_Request):
    form_fields: list[dict[str, Any]] = Field(alias="fields")
    submit_selector: str | None = Field(default=None, alias="submitSelector")
    wait_after_submit: int = Field(default=DEFAULT_SUBMIT_WAIT_MS, alias="waitAfterSubmit")


class InteractRequest(_Request):
    actions: list[Any]
    wait_for_navigation: bool = Field(default=False, alias="waitForNavigation")
    screenshot: bool = False


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _validation_message(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(piece) for piece in err.get("loc", ()) if piece != "body")
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"


@app.exception_handler(RequestValidationError)
async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": _validation_message(exc)})


@app.exception_handler(BrowserServiceError)
async def _service_failed(request: Request, exc: BrowserServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc)})


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "service": SERVICE_NAME}


@app.post("/scrape")
async def scrape(body: ScrapeRequest) -> dict[str, Any]:
    data = await operations.scrape(body.url, wait_for=body.wait_for, selector=body.selector, clean=body.clean)
    return _ok(data)


@app.post("/screenshot")
async def screenshot(body: ScreenshotRequest) -> dict[str, Any]:
    data = await operations.capture_screenshot(body.url, full_page=body.full_page, image_type=body.type)
    return _ok(data)


@app.post("/pdf")
async def pdf(body: PdfRequest) -> dict[str, Any]:
    data = await operations.export_pdf(body.url, page_format=body.format)
    return _ok(data)


@app.post("/execute")
async def execute(body: ExecuteRequest) -> dict[str, Any]:
    data = await operations.evaluate_script(body.url, body.script, wait_for=body.wait_for)
    return _ok(data)


@app.post("/fill-form")
async def fill_form(body: FillFormRequest) -> dict[str, Any]:
    data = await operations.fill_form(
        body.url,
        body.form_fields,
        submit_selector=body.submit_selector,
        wait_after_submit=body.wait_after_submit,
    )
    return _ok(data)


@app.post("/interact")
async def interact(body: InteractRequest) -> dict[str, Any]:
    actions = parse_actions(body.actions)
    report = await run_interaction(
        body.url,
        actions,
        screenshot=body.screenshot,
        wait_for_navigation=body.wait_for_navigation,
    )
    return _ok(report.to_dict())
