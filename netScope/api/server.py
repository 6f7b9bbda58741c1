"""FastAPI application entrypoint for the netScope API."""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from netScope.api import deps
from netScope.api.routes import connectivity, dns, dns_check, health, ip, routing
from netScope.config import RateLimitConfig, get_settings
from netScope.enrichment import KeyedRateLimiter
from netScope.errors import DiagnosticError
from netScope.logging_config import reset_request_id, sanitize_log_data, set_request_id, setup_logging

logger = setup_logging("api")

API_PREFIX = "/api"
RATE_LIMIT_EXEMPT = {f"{API_PREFIX}/health"}
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

settings = get_settings()

app = FastAPI(title="netScope-api", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def configure_rate_limit(cfg: RateLimitConfig) -> None:
    """Install (or remove) the per-client request limiter."""
    app.state.rate_limiter = (
        KeyedRateLimiter(max_requests=cfg.max_requests, window_seconds=cfg.window_seconds)
        if cfg.enabled
        else None
    )


configure_rate_limit(settings.rate_limit)


@app.middleware("http")
async def rate_limit(request: Request, call_next: Callable) -> Response:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None or request.url.path in RATE_LIMIT_EXEMPT:
        return await call_next(request)

    client_host = request.client.host if request.client else "unknown"
    if not limiter.try_acquire(client_host):
        logger.warning(
            "Rate limit exceeded",
            extra={"client_host": client_host, "path": request.url.path, "status_code": 429, "outcome": "rate_limited"},
        )
        return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
    return await call_next(request)


@app.middleware("http")
async def trace_requests(request: Request, call_next: Callable) -> Response:
    """Bind a request id for the duration of the request and log its outcome."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    token = set_request_id(request_id)
    route = {"method": request.method, "path": request.url.path}
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            f"{request.method} {request.url.path} raised {type(exc).__name__}",
            exc_info=True,
            extra={**route, "outcome": "exception", "error_type": type(exc).__name__},
        )
        raise
    else:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                **route,
                "client_host": request.client.host if request.client else None,
                "query": sanitize_log_data(dict(request.query_params)),
                "status_code": response.status_code,
                "duration": elapsed_ms,
                "outcome": "success" if response.status_code < 400 else "error",
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        reset_request_id(token)


@app.exception_handler(DiagnosticError)
async def diagnostic_error_handler(request: Request, exc: DiagnosticError):
    logger.warning(
        f"Request rejected: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code, "error_type": type(exc).__name__},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(
        "Malformed request body",
        extra={"path": request.url.path, "status_code": 400, "error_type": "RequestValidationError"},
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Never echo stack traces or tool output back to the client."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


for module in (dns, connectivity, routing, ip, dns_check, health):
    app.include_router(module.router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Starting netScope API", extra={"state": "startup"})
    deps.init_engine(settings)
    logger.info("API startup complete", extra={"state": "ready"})


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("Shutting down netScope API", extra={"state": "shutdown"})
    await deps.close_engine()
    logger.info("API shutdown complete", extra={"state": "stopped"})


@app.get("/")
async def root():
    return {"status": "ok", "service": "netScope-api"}


def main() -> None:
    import uvicorn

    uvicorn.run(
        "netScope.api.server:app",
        host=settings.server.host,
        port=settings.server.port,
    )


if __name__ == "__main__":
    main()
