from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqladmin import Admin

from lifelink.admin.views import ADMIN_VIEWS
from lifelink.config import settings
from lifelink.database import IS_SERVERLESS, async_session, close_db, engine, init_db
from lifelink.db.base import utcnow
from lifelink.middlewares.logging_middleware import LoggingMiddleware
from lifelink.routes import router as api_router
from lifelink.schemas.stats_schema import HealthResponse
from lifelink.services.user_service import UserService
from lifelink.utils.errors import DatabaseSetupError, database_setup_error_handler
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)

# Paths reachable without a bearer token
PUBLIC_PATHS = (
    "/health",
    "/auth/register",
    "/auth/login",
    "/hospitals/apply",
    "/setup/status",
)


async def seed_platform_admin() -> None:
    async with async_session() as db:
        try:
            await UserService(db).ensure_platform_admin(
                settings.SYS_ADMIN, settings.SYS_ADMIN_PASS
            )
            logger.info(
                "Platform admin ensured",
                extra={"event_type": "platform_admin_seeded", "email": settings.SYS_ADMIN},
            )
        except Exception as e:
            await db.rollback()
            logger.error(f"Error seeding platform admin: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks"""
    logger.info("Application starting up...")
    logger.info(f"Serverless mode: {IS_SERVERLESS}")

    if settings.AUTO_CREATE_TABLES:
        await init_db()

    if settings.SEED_PLATFORM_ADMIN:
        await seed_platform_admin()

    yield

    logger.info("Application shutting down...")
    await close_db()


def create_application() -> FastAPI:
    """Create the FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "Accept",
            "X-Requested-With",
            "X-Request-ID",
            "Origin",
        ],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(DatabaseSetupError, database_setup_error_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    # SQLAdmin keeps state between requests, so it is skipped in serverless mode
    if settings.ENABLE_ADMIN and not IS_SERVERLESS:
        admin = Admin(app, engine, base_url=settings.ADMIN_PATH)
        for view in ADMIN_VIEWS:
            admin.add_view(view)
    else:
        logger.info("SQLAdmin disabled")

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }

        public = {f"{settings.API_PREFIX}{p}" for p in PUBLIC_PATHS}
        public.add(f"{settings.API_PREFIX}/hospitals")
        for path_key, path_item in openapi_schema["paths"].items():
            if path_key in public:
                continue
            for method in path_item.values():
                method.setdefault("security", []).append({"BearerAuth": []})

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    @app.get(f"{settings.API_PREFIX}/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """Liveness probe"""
        return HealthResponse(status="ok", timestamp=utcnow())

    return app


app = create_application()
