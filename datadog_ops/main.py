from __future__ import annotations

from datetime import datetime, timezone
import contextvars
import json
import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .datadog_client import DatadogClient
from .datetime_parser import EpochOutOfRange, InvalidDatetimeFormat, epoch_to_iso, resolve_datetime
from .models import (
    ResolveDatetimeRequest,
    ResolveDatetimeResponse,
    ToolInfo,
    ToolInvokeRequest,
    ToolInvokeResponse,
)
from .settings import settings
from .tools import build_tools


_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

# Tool arguments use from_time/to_time because "from" is a Python keyword.
_ARG_ALIASES = {"from": "from_time", "to": "to_time"}


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_var.get()
        return True


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": settings.service_name,
            "request_id": getattr(record, "request_id", None),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class _HealthzAccessFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = args[2]
            if isinstance(path, str) and path.startswith("/healthz"):
                return False
        return "/healthz" not in record.getMessage()


def configure_logging() -> None:
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    formatter = _JSONFormatter()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(formatter)
        if not any(isinstance(f, _RequestIdFilter) for f in handler.filters):
            handler.addFilter(_RequestIdFilter())
    logging.getLogger("uvicorn.access").addFilter(_HealthzAccessFilter())


def _apply_aliases(arguments: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in arguments.items():
        out[_ARG_ALIASES.get(key, key)] = value
    return out


def create_app(client: DatadogClient | None = None) -> FastAPI:
    app = FastAPI(title="Datadog Ops Service", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    datadog = client or DatadogClient.from_settings(settings)
    tools = {t.name: t for t in build_tools(datadog)}

    @app.middleware("http")
    async def _request_id_middleware(request: Request, call_next):
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = _request_id_var.set(req_id)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = req_id
            return response
        finally:
            _request_id_var.reset(token)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "service": settings.service_name}

    @app.get("/api/tools", response_model=list[ToolInfo])
    def list_tools() -> list[ToolInfo]:
        return [ToolInfo(name=t.name, description=t.description, args=t.args) for t in tools.values()]

    @app.post("/api/tools/{name}", response_model=ToolInvokeResponse)
    async def invoke_tool(name: str, req: ToolInvokeRequest) -> ToolInvokeResponse:
        selected = tools.get(name)
        if selected is None:
            raise HTTPException(status_code=404, detail=f"unknown tool: {name}")
        arguments = _apply_aliases(req.arguments)
        t0 = time.monotonic()
        logging.info("tool invoke start, tool=%s, arguments=%s", name, arguments)
        try:
            result = await selected.ainvoke(arguments)
        except ValidationError as exc:
            logging.warning("tool invoke rejected arguments, tool=%s, error=%s", name, exc)
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
        is_error = isinstance(result, dict) and "error" in result
        dt = time.monotonic() - t0
        logging.info("tool invoke done, tool=%s, duration_s=%.3f, is_error=%s", name, dt, is_error)
        return ToolInvokeResponse(tool=name, is_error=is_error, result=result)

    @app.post("/api/datetime/resolve", response_model=ResolveDatetimeResponse)
    def resolve(req: ResolveDatetimeRequest) -> ResolveDatetimeResponse:
        try:
            epoch = resolve_datetime(req.value)
        except InvalidDatetimeFormat as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        try:
            iso = epoch_to_iso(epoch)
        except EpochOutOfRange as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return ResolveDatetimeResponse(value=req.value, epoch=epoch, iso=iso)

    return app


configure_logging()
app = create_app()
