import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError

from app.api.router import router
from app.core.config import Settings, get_settings
from app.services.cache import CacheStore
from app.services.errors import ServiceError
from app.services.invalidation import InvalidationCoordinator

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(title="Squad Dashboard", version="1.0")

    allowed_origins = [
        origin.strip()
        for origin in settings.CORS_ORIGINS.split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One cache per process, shared by the read path and the invalidation hooks.
    app.state.cache = CacheStore(
        default_ttl=settings.DASHBOARD_CACHE_TTL_SECONDS,
        check_period=settings.CACHE_CHECK_PERIOD_SECONDS,
    )
    app.state.invalidation = InvalidationCoordinator(app.state.cache)

    app.include_router(router)

    @app.on_event("shutdown")
    async def _shutdown_cache() -> None:
        app.state.cache.flush()

    @app.exception_handler(ServiceError)
    def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.code})

    @app.exception_handler(OperationalError)
    def handle_db_unavailable(request: Request, exc: OperationalError) -> JSONResponse:
        logger.warning(
            "db_unavailable method=%s path=%s detail=%s",
            request.method,
            request.url.path,
            str(exc),
        )
        return JSONResponse(status_code=503, content={"detail": "db_unavailable"})

    @app.exception_handler(IntegrityError)
    def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        detail = "db_integrity_error"
        orig = getattr(exc, "orig", None)
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint:
            detail = f"db_integrity_error:{constraint}"
        return JSONResponse(status_code=400, content={"detail": detail})

    @app.exception_handler(Exception)
    def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unexpected_error")
        return JSONResponse(status_code=500, content={"detail": "server_error"})

    @app.get("/health")
    def health() -> dict:
        return {"ok": True, "env": settings.APP_ENV, "cache_keys": len(app.state.cache)}

    return app


app = create_app()
