"""
Stockpoint API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import Request

from core.config import get_settings
from core.errors import StockpointError

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Stockpoint API starting up", version=settings.app_version)
    yield
    logger.info("Stockpoint API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Multi-warehouse inventory ledger, transfers and reorder alerts",
    lifespan=lifespan,
)


# ─── Error envelope ─────────────────────────────────────────────────────────


@app.exception_handler(StockpointError)
async def stockpoint_error_handler(request: Request, exc: StockpointError):
    if exc.status_code >= 500:
        logger.error("api.error", path=request.url.path, code=exc.code, message=exc.message)
    else:
        logger.info("api.rejected", path=request.url.path, code=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            {
                "error": "validation_error",
                "message": "Validation failed",
                "details": exc.errors(),
            }
        ),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("api.database_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "An unexpected error occurred"},
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import (
    alerts,
    dashboard,
    products,
    stock,
    transfers,
    warehouses,
)

app.include_router(products.router)
app.include_router(warehouses.router)
app.include_router(stock.router)
app.include_router(transfers.router)
app.include_router(alerts.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
