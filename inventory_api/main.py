from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from inventory_api.core.config import Settings, settings as default_settings
from inventory_api.core.logging import configure_logging
from inventory_api.db.database import build_engine, build_session_maker, create_db_and_tables
from inventory_api.routers.inventory import router as inventory_router
from inventory_api.routers.users import router as users_router
from inventory_api.services import build_services

logger = structlog.get_logger(__name__)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("request_rejected", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Invalid request"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Validate configuration and compose every component the API needs."""
    settings = settings or default_settings
    configure_logging(settings.log_level, json=settings.log_json, echo_sql=settings.database_echo)
    settings.validate()

    engine = build_engine(settings)
    services = build_services(settings, build_session_maker(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_db_and_tables(engine)
        logger.info("inventory_api_started")
        yield
        await engine.dispose()

    app = FastAPI(
        title="Inventory API",
        description=(
            "API that provides the means to modify an inventory. Each user has their own inventory "
            "and only authenticated users can modify their own inventory."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Authorization"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(users_router, prefix="/user", tags=["user"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/redoc")

    return app


if __name__ == "__main__":
    uvicorn.run("inventory_api.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
