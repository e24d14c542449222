"""FastAPI gateway in front of the Gemini generateContent API.

Endpoints:
- GET  /             service descriptor
- GET  /health       liveness, uptime and version
- GET  /api/stats    request counter, uptime and memory usage
- POST /api/prompt   { "prompt": "...", "maxTokens": 1000 }
- GET  /api/test     one-shot upstream smoke test

Routes under /api/ share one per-client rate limit.
"""
# No postponed annotations here: FastAPI resolves endpoint annotations through
# the slowapi wrapper's globals.
import logging
import platform
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded as LimitBreached
from starlette.exceptions import HTTPException as StarletteHTTPException

from gemini_gateway import __version__
from gemini_gateway.common.config import GatewaySettings, load_settings
from gemini_gateway.common.errors import (
    GatewayError,
    InternalError,
    RateLimitExceeded,
    ValidationError,
)
from gemini_gateway.common.schema import (
    HealthOut,
    PromptOut,
    SelfTestOut,
    StatsOut,
    UptimeOut,
    utc_now_iso,
)
from gemini_gateway.serve.gateway import PromptGateway
from gemini_gateway.serve.ratelimit import API_SCOPE, client_address, create_limiter
from gemini_gateway.serve.state import GatewayState, format_uptime, memory_usage

LOGGER = logging.getLogger("gemini_gateway.app")

AVAILABLE_ROUTES = ["/", "/health", "/api/stats", "/api/prompt", "/api/test"]


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: GatewaySettings = app.state.settings
    LOGGER.info("Gemini gateway %s starting on port %s", __version__, settings.port)
    LOGGER.info("Health check: http://localhost:%s/health", settings.port)
    LOGGER.info("AI endpoint: http://localhost:%s/api/prompt", settings.port)
    if not settings.has_api_key:
        LOGGER.warning("GEMINI_API_KEY is not set; /api/prompt will answer with a configuration error")
    yield


def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _rate_limit_handler(request: Request, exc: LimitBreached) -> JSONResponse:
    LOGGER.warning("Rate limit exceeded for %s on %s (%s)", client_address(request), request.url.path, exc.detail)
    return _gateway_error_handler(request, RateLimitExceeded())


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _gateway_error_handler(request, ValidationError())


def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={"error": "Route not found", "availableRoutes": AVAILABLE_ROUTES},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return _gateway_error_handler(request, InternalError(str(exc)))


def create_app(settings: GatewaySettings | None = None) -> FastAPI:
    """
    Build a gateway app with its own state, limiter and upstream client.

    Args:
        settings: Gateway settings; loaded from config file and environment if omitted.
    """
    settings = settings or load_settings()
    limiter = create_limiter()
    api_limit = limiter.shared_limit(settings.rate_limit, scope=API_SCOPE)

    app = FastAPI(title="Gemini Gateway", version=__version__, lifespan=_lifespan)
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.gateway_state = GatewayState(version=__version__)
    app.state.gateway = PromptGateway(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(LimitBreached, _rate_limit_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/health", response_model=HealthOut)
    def health(request: Request) -> HealthOut:
        state: GatewayState = request.app.state.gateway_state
        return HealthOut(
            status="healthy",
            timestamp=utc_now_iso(),
            uptime=state.uptime_seconds(),
            version=state.version,
        )

    @app.get("/api/stats", response_model=StatsOut)
    @api_limit
    def stats(request: Request) -> StatsOut:
        state: GatewayState = request.app.state.gateway_state
        seconds = state.uptime_seconds()
        return StatsOut(
            totalRequests=state.total_requests,
            uptime=UptimeOut(seconds=seconds, formatted=format_uptime(seconds)),
            startTime=state.start_time_iso(),
            memoryUsage=memory_usage(),
            pythonVersion=platform.python_version(),
        )

    @app.post("/api/prompt", response_model=PromptOut)
    @api_limit
    def prompt(request: Request, body: Any = Body(None)) -> PromptOut:
        request.app.state.gateway_state.record_request()
        gateway: PromptGateway = request.app.state.gateway
        result = gateway.handle(body)
        return PromptOut.from_result(result)

    @app.get("/api/test", response_model=SelfTestOut)
    @api_limit
    def self_test(request: Request) -> Any:
        gateway: PromptGateway = request.app.state.gateway
        try:
            text = gateway.self_test()
        except Exception as e:
            LOGGER.error("Self-test failed: %s", e)
            return JSONResponse(status_code=500, content={"error": "Test failed", "message": str(e)})
        return SelfTestOut(status="API is working!", testResponse=text, timestamp=utc_now_iso())

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "message": "Gemini AI Server",
            "version": __version__,
            "endpoints": {
                "health": "GET /health",
                "stats": "GET /api/stats",
                "prompt": "POST /api/prompt",
                "test": "GET /api/test",
            },
            "documentation": {
                "prompt": {
                    "method": "POST",
                    "url": "/api/prompt",
                    "body": {"prompt": "Your question here", "maxTokens": settings.default_max_tokens},
                },
            },
        }

    return app
