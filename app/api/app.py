"""FastAPI application factory.

Builds the HTTP surface of the matching service: user and project endpoints,
both sides' consent calls, and match listing. The database must already be
initialized (see ``app.main``); the factory only wires routers, error
handlers, and the request-scoped logging middleware.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.context import log_context, new_request_id
from app.ranking.base import CandidateRanker
from app.ranking.skills import SkillOverlapRanker

from .errors import register_exception_handlers
from .routes import matches_router, projects_router, users_router
from .schemas import HealthResponse

API_VERSION = "0.1.0"
API_PREFIX = "/api"
REQUEST_ID_HEADER = "X-Request-ID"

logger = get_logger(__name__, component="api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    logger.info("Application starting up", extra={"event": "api.startup"})

    yield

    logger.info("Application shutting down", extra={"event": "api.shutdown"})


def create_app(
    app_config: Optional[AppConfig] = None,
    ranker: Optional[CandidateRanker] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        app_config: Validated configuration (defaults when omitted)
        ranker: Candidate ranker shared by all requests (defaults to
            SkillOverlapRanker built from ``app_config.ranking``)

    Returns:
        Configured FastAPI instance
    """
    app_config = app_config or AppConfig()

    app = FastAPI(
        title="Freelance Match",
        version=API_VERSION,
        description="Mutual-consent matching between clients' projects and freelancers",
        root_path=app_config.api.root_path,
        lifespan=lifespan,
    )
    app.state.app_config = app_config
    app.state.ranker = ranker or SkillOverlapRanker(app_config.ranking)

    register_exception_handlers(app)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        started = time.perf_counter()

        with log_context(request_id=request_id):
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "event": "api.request.completed",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(status="ok", version=API_VERSION)

    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(projects_router, prefix=API_PREFIX)
    app.include_router(matches_router, prefix=API_PREFIX)

    return app
