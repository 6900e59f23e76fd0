from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from tasker.core.config import Settings, get_settings
from tasker.core.context import AppContext, get_context
from tasker.core.exceptions import StoreError, ValidationError
from tasker.core.logging import setup_logging
from tasker.routers import tasks


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        app.state.context = await AppContext.create(settings)
        try:
            yield
        finally:
            await app.state.context.close()

    app = FastAPI(
        title=settings.app_name,
        description="Task list API with a cache-aside Redis layer over SQLModel",
        swagger_ui_parameters={"displayRequestDuration": True},
        version="1.0.0",
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(tasks.router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid body", "detail": str(exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid body", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "db error"},
        )

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to Task List API",
            "docs": "/docs",
            "version": "1.0.0",
        }

    @app.get("/healthz", response_class=PlainTextResponse)
    async def liveness():
        return "ok"

    @app.get("/health")
    async def health_check(context: AppContext = Depends(get_context)):
        database_ok = await context.store.ping()
        cache_ok = await context.cache_backend.ping()
        return {
            "status": "healthy" if database_ok else "unhealthy",
            "database": "ok" if database_ok else "unreachable",
            "cache": "ok" if cache_ok else "unreachable",
            "cache_stats": context.cache.get_stats(),
        }

    return app


app = create_app()
