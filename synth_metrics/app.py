"""Application initialization and middleware.

Provides:
- `create_app()`: builds the FastAPI app with the metric registry, the ticker
  and the HTTP endpoints.
- Request context middleware: IDs, structured access logs and request metrics.
- Exception handler rendering domain errors as plain-text responses.

Google-style docstrings to ease automatic documentation.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .api import router as api_router
from .config_loader import ConfigSource, build_effective_config
from .engine import Ticker
from .errors import SynthError
from .logging_utils import get_logger, new_request_id, set_level, set_request_id
from .metrics import metrics
from .registry import MetricRegistry


def create_app(source: Optional[ConfigSource] = None, registry: Optional[MetricRegistry] = None) -> FastAPI:
    """Create and initialize the application.

    The registry is populated before the app is returned; the ticker only
    runs inside the app lifespan (server start or `with TestClient(app)`).

    Args:
        source (ConfigSource, optional): Configuration; defaults to the process environment.
        registry (MetricRegistry, optional): Pre-built registry, mostly for tests.

    Returns:
        FastAPI: The configured application.
    """
    source = source or (registry.source if registry is not None else ConfigSource())
    cfg: Dict[str, Any] = build_effective_config(source)
    log = get_logger("synth-metrics")
    set_level(cfg["log_level"])

    registry = registry or MetricRegistry.initialize(source=source)
    ticker = Ticker(registry, interval_s=cfg["tick_interval_s"])

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        ticker.start()
        try:
            yield
        finally:
            ticker.stop()

    app = FastAPI(title="synth-metrics", version="0.1.0", lifespan=lifespan)

    # Request ID + structured access logs
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        rid = request.headers.get("x-request-id") or new_request_id()
        request.state.request_id = rid
        set_request_id(rid)
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Request-Id"] = rid
            return response
        finally:
            dur = (time.perf_counter() - start) * 1000.0
            route = request.scope.get("route")
            path_label = getattr(route, "path", None) or request.url.path
            method = request.method.upper()
            metrics.inc("requests_total", 1)
            metrics.inc(f"requests_total:{method} {path_label}", 1)
            if status >= 400:
                metrics.inc("errors_total", 1)
                metrics.inc(f"errors_total:{method} {path_label}", 1)
            metrics.observe_duration("http_request", dur)
            metrics.observe_duration(f"http_request:{method} {path_label}", dur)
            log.info(
                "request",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "route": path_label,
                    "dur_ms": round(dur, 2),
                    "request_id": rid,
                    "status": status,
                },
            )
            set_request_id(None)

    @app.exception_handler(SynthError)
    async def handle_synth_error(request: Request, exc: SynthError) -> PlainTextResponse:
        log.warning(
            "request.rejected",
            extra={"method": request.method, "path": request.url.path, "error": type(exc).__name__, "detail": exc.detail, **exc.extra},
        )
        return PlainTextResponse(exc.detail + "\n", status_code=exc.status_code)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"status": "ok", "types": registry.numeric_types, "ticker": ticker.running}

    @app.get("/stats")
    def stats_endpoint():
        return JSONResponse(metrics.snapshot())

    app.include_router(api_router)

    # Attach state for downstream use
    app.state.config = cfg
    app.state.registry = registry
    app.state.ticker = ticker
    return app
