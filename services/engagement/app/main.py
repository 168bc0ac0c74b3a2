import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.comments.router import router as comments_router
from app.database import init_db
from app.dependencies import get_settings
from app.feed.router import router as feed_router
from app.ledger.router import router as ledger_router
from shared.database.redis_client import close_redis_client, get_redis_client
from shared.middleware.error_handler import error_envelope_middleware, http_exception_handler
from shared.middleware.request_id import request_id_middleware

# Swagger tag groups displayed in the OpenAPI docs sidebar
_OPENAPI_TAGS = [
    {
        "name": "Feed",
        "description": (
            "Paginated content feeds: sorted (newest, oldest, most-liked, most-commented) "
            "with search and category filters, trending by period, and a personalized "
            "feed that boosts categories the caller has liked. Also serves the creator "
            "leaderboard."
        ),
    },
    {
        "name": "Engagement",
        "description": (
            "Like and save toggles with per-caller status. The like relation is the "
            "source of truth; like_count is reconciled against it on every toggle."
        ),
    },
    {
        "name": "Comments",
        "description": "Flat, oldest-first comment lists per content item.",
    },
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.engagement_database_url)

    # Redis is optional: without it affinity sets are recomputed per request
    app.state.redis = None
    if settings.redis_enabled:
        app.state.redis = get_redis_client(settings.redis_url)

    yield

    await close_redis_client(app.state.redis)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = FastAPI(
        title="Memeverse Engagement Service",
        description=(
            "Owns content items and everything users do to them: likes, saves and "
            "comments, plus the ranked and paginated feeds built from those signals."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # CORS must be registered first (runs last in middleware stack)
    # so that preflight OPTIONS requests get CORS headers before any auth check.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(feed_router, prefix="/api/v1")
    app.include_router(ledger_router, prefix="/api/v1")
    app.include_router(comments_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Lightweight liveness probe. Does not hit the database."""
        return {"status": "ok", "service": "engagement"}

    return app


app = create_app()
