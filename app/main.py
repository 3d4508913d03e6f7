from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4
import json
import time
from datetime import datetime, UTC

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

import app.core.dependencies as deps
from app.api.errors import setup_error_handlers
from app.api.schemas import HealthResponse
from app.api.v1.ai import router as ai_router
from app.api.v1.analytics import router as analytics_router
from app.api.v1.auth import router as auth_router
from app.api.v1.document_templates import router as document_templates_router
from app.api.v1.documents import router as documents_router
from app.api.v1.ideas import router as ideas_router
from app.api.v1.milestones import router as milestones_router
from app.api.v1.phases import router as phases_router
from app.api.v1.projects import router as projects_router
from app.api.v1.risks import router as risks_router
from app.api.v1.tasks import router as tasks_router
from app.api.v1.vendors import router as vendors_router
from app.application.services import ChecklistService
from app.core.config import settings
from app.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from app.core.observability import metrics, setup_observability
from app.domain.exceptions import CacheException, LLMException
from app.infrastructure.cache.redis_client import RedisCacheManager, RedisClient
from app.infrastructure.db.database import Database
from app.infrastructure.db.repositories import (
    PostgresChecklistRepository,
    PostgresDocumentTemplateRepository,
    PostgresProjectRepository,
)
from app.infrastructure.llm.client import LLMClient

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


class CustomJSONResponse(JSONResponse):
    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
            default=jsonable_encoder,
        ).encode("utf-8")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    await startup_event(app)

    try:
        yield
    finally:
        await shutdown_event(app)


async def seed_document_templates(database: Database) -> None:
    async with database.session() as session:
        checklist_service = ChecklistService(
            template_repo=PostgresDocumentTemplateRepository(session),
            checklist_repo=PostgresChecklistRepository(session),
            project_repo=PostgresProjectRepository(session),
        )
        await checklist_service.seed_templates()


async def startup_event(app: FastAPI) -> None:
    """Initialize application dependencies."""
    logger.info("Starting up Portfolio Hub API", version=settings.version)

    try:
        setup_observability()

        deps.database = Database(settings.database_url, settings.database_echo)
        await deps.database.initialize()
        await deps.database.create_tables()
        if settings.seed_document_templates:
            await seed_document_templates(deps.database)

        db_healthy = await deps.database.health_check()
        if not db_healthy:
            raise RuntimeError("Database health check failed")

    except Exception as e:
        logger.error("Application startup failed", error=str(e))
        raise

    # Redis only backs the forecast cache; the API runs without it
    deps.redis_client = RedisClient(settings.redis_url)
    try:
        await deps.redis_client.initialize()
        deps.cache_manager = RedisCacheManager(deps.redis_client)
    except CacheException as e:
        logger.warning("Redis unavailable, forecast cache disabled", error=str(e))
        deps.cache_manager = None

    # Without a key the AI routes answer with a gateway error (or the chat fallback)
    deps.llm_client = LLMClient()
    try:
        await deps.llm_client.initialize()
    except LLMException as e:
        logger.warning("AI gateway not configured", error=str(e))

    logger.info(
        "Application startup completed successfully",
        database_healthy=db_healthy,
        cache_enabled=deps.cache_manager is not None,
        ai_enabled=deps.llm_client.client is not None,
        environment=settings.environment,
    )


async def shutdown_event(app: FastAPI) -> None:
    """Cleanup application resources."""
    logger.info("Shutting down Portfolio Hub API")

    try:
        if deps.database:
            await deps.database.close()

        if deps.redis_client:
            await deps.redis_client.close()

        if deps.llm_client:
            await deps.llm_client.close()

        logger.info("Application shutdown completed")

    except Exception as e:
        logger.error("Error during shutdown", error=str(e))


async def observe_request(request: Request, call_next):
    """Bind a request id to the log context and record HTTP metrics."""
    clear_request_context()
    request_id = request.headers.get("x-request-id") or str(uuid4())
    bind_request_context(request_id=request_id, path=request.url.path)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Route templates keep the endpoint label bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    metrics.record_http_request(request.method, endpoint, response.status_code, duration)

    response.headers["X-Request-ID"] = request_id
    return response


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Project portfolio management with an AI assistant",
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
        default_response_class=CustomJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )
    app.middleware("http")(observe_request)

    setup_error_handlers(app)

    for router in (
        auth_router,
        projects_router,
        milestones_router,
        phases_router,
        risks_router,
        documents_router,
        document_templates_router,
        vendors_router,
        tasks_router,
        ideas_router,
        analytics_router,
        ai_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        services = {}

        if deps.database:
            services["database"] = await deps.database.health_check()

        if deps.redis_client:
            services["redis"] = await deps.redis_client.health_check()

        # Redis is optional, so only the database decides overall health
        healthy = services.get("database", False)

        return HealthResponse(
            status="healthy" if healthy else "unhealthy",
            timestamp=datetime.now(UTC),
            services=services,
            version=settings.version,
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
