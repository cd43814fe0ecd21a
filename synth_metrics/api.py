from __future__ import annotations

from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .config_loader import random_params
from .errors import InvalidParameter, InvalidPath
from .logging_utils import get_logger
from .metrics import metrics
from .registry import MetricRegistry


router = APIRouter()
log = get_logger("synth-metrics")


def get_registry(request: Request) -> MetricRegistry:
    return request.app.state.registry


def _segments(path: str, expected: int, what: str) -> List[str]:
    parts = path.split("/") if path else []
    if len(parts) != expected:
        raise InvalidPath(f"Invalid {what} path", extra={"path": path})
    return parts


def _metric_line(numeric_type: str, algorithm: str, value: str) -> str:
    return f"Metric_{numeric_type}_{algorithm}: {value}\n"


@router.get("/series", response_class=PlainTextResponse)
@router.get("/series/{path:path}", response_class=PlainTextResponse)
def series(request: Request, path: str = ""):
    numeric_type, algorithm = _segments(path, 2, "series data")
    buff = get_registry(request).lookup(numeric_type, algorithm)
    value = buff.current()
    log.debug("series.match", extra={"type": numeric_type, "algo": algorithm, "value": value})
    return PlainTextResponse(_metric_line(numeric_type, algorithm, value))


@router.get("/metrics", response_class=PlainTextResponse)
def series_all(request: Request):
    lines = [_metric_line(t, a, v) for t, a, v in get_registry(request).series()]
    return PlainTextResponse("".join(lines))


@router.get("/rand/all", response_class=PlainTextResponse)
def rand_all(request: Request):
    out = [f"{mt.name.capitalize()}Metric: {mt.random_value()}\n" for mt in get_registry(request)]
    return PlainTextResponse("".join(out))


def _apply_reset(registry: MetricRegistry, name: str, value: str) -> List[str]:
    try:
        rebuilt = registry.reset(name, value)
    except InvalidParameter:
        metrics.inc("reset_rejections_total", 1)
        raise
    metrics.inc("resets_total", 1)
    return rebuilt


@router.get("/reset", response_class=PlainTextResponse)
@router.get("/reset/{path:path}", response_class=PlainTextResponse)
def reset(request: Request, path: str = ""):
    name, value = _segments(path, 2, "reset")
    rebuilt = _apply_reset(get_registry(request), name, value)
    return PlainTextResponse("".join(f"Reset {name}={value}: {b}\n" for b in rebuilt))


class ResetRequest(BaseModel):
    name: str
    value: str


@router.post("/admin/reset")
def admin_reset(req: ResetRequest, request: Request):
    rebuilt = _apply_reset(get_registry(request), req.name, req.value)
    return JSONResponse({"status": "accepted", "name": req.name, "value": req.value, "buffers": rebuilt})


@router.get("/ep/kv", response_class=PlainTextResponse)
def kv_data():
    return PlainTextResponse("HelloWorld: 69")


@router.get("/ep/json")
def json_data():
    return JSONResponse({"HelloWorld": "69"})


@router.get("/info")
def info(request: Request):
    registry = get_registry(request)
    cfg = request.app.state.config
    ticker = getattr(request.app.state, "ticker", None)
    return {
        "name": "synth-metrics",
        "version": "0.1.0",
        "types": registry.describe(),
        "random": random_params(registry.source).as_dict(),
        "ticker": {
            "interval_s": cfg.get("tick_interval_s"),
            "running": bool(ticker and ticker.running),
        },
        "endpoints": {
            "series": "/series/{type}/{algorithm}",
            "metrics": "/metrics",
            "random": "/rand/all",
            "reset": "/reset/{PARAM_NAME}/{value}",
            "admin_reset": "/admin/reset",
            "kv": "/ep/kv",
            "json": "/ep/json",
            "health": "/healthz",
            "stats": "/stats",
        },
        "headers": {"request_id": "X-Request-Id"},
    }
