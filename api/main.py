"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agents.base import build_llm_client
from core.config import settings
from core.integrations.email import get_email_service
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import (
    applications,
    bulk,
    candidate_interview,
    candidates,
    dashboard,
    decisions,
    drives,
    evaluations,
    interviews,
    jobs,
    notifications,
    offers,
    onboarding,
    screening,
    webhooks,
)
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    RateLimitMiddleware,
    default_rules,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    # Overrides installed before startup (tests) are kept
    if getattr(app.state, "email_service", None) is None:
        app.state.email_service = get_email_service()
    if getattr(app.state, "llm_client", None) is None:
        app.state.llm_client = build_llm_client(settings.google_api_key)

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


# Mounted under the API prefix; each router carries its own path
API_ROUTERS = [
    jobs.router,
    candidates.router,
    applications.router,
    dashboard.router,
    screening.router,
    candidate_interview.router,
    interviews.router,
    interviews.rounds_router,
    interviews.config_router,
    evaluations.router,
    decisions.router,
    offers.router,
    onboarding.router,
    drives.router,
    drives.candidate_router,
    drives.questions_router,
    bulk.router,
    notifications.router,
]


def create_app() -> FastAPI:
    """Build the application with its middleware stack and routers."""
    app = FastAPI(
        title=settings.app_name,
        description="Hiring workflow: screening, AI interviews, decisions, offers and campus drives",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        debug=settings.debug,
        lifespan=lifespan,
    )

    setup_error_handlers(app)

    # Middleware added last runs first
    app.add_middleware(
        RateLimitMiddleware,
        redis_url=str(settings.redis_url),
        rules=default_rules(
            settings.api_prefix,
            settings.rate_limit_token_per_minute,
            settings.rate_limit_webhook_per_minute,
        ),
        key_prefix=f"{settings.app_name}:ratelimit",
        enabled=settings.rate_limit_enabled,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        max_body_size=settings.log_max_body_size,
    )
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

    app.include_router(health.router)
    for router in API_ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)
    # Providers are configured with the bare /webhook path
    app.include_router(webhooks.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
