"""
Table Tamer - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.api import (
    routes_events,
    routes_guests,
    routes_import,
    routes_profile,
    routes_public,
    routes_tables,
)
from app.services.exceptions import NotFoundError, ServiceError
from app.utils.responses import error_response
from app.utils.security import AuthenticationError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    if settings.USE_FIREBASE:
        missing = settings.missing_firebase_config()
        if missing:
            raise RuntimeError(f"Missing Firebase configuration: {', '.join(missing)}")
        logger.info("Firebase configuration loaded")
    yield
    logger.info("Application shutdown")


# Create FastAPI application
app = FastAPI(
    title="Table Tamer",
    description="Event seating management: guest lists, tables and assignments",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return error_response("Authentication required", status_code=401)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report the first invalid field as a 400 envelope"""
    errors = exc.errors()
    if not errors:
        return error_response("Invalid request", status_code=400)

    first = errors[0]
    cause = (first.get("ctx") or {}).get("error")
    if cause is not None:
        message = str(cause)
    else:
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return error_response(message, status_code=400)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    status_code = 404 if isinstance(exc, NotFoundError) else 400
    return error_response(exc.message, status_code=status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response("Internal server error", status_code=500)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}


# Include routers
app.include_router(routes_public.router, prefix="/api", tags=["public"])
app.include_router(routes_events.router, prefix="/api", tags=["events"])
app.include_router(routes_guests.router, prefix="/api", tags=["guests"])
app.include_router(routes_tables.router, prefix="/api", tags=["tables"])
app.include_router(routes_import.router, prefix="/api", tags=["import"])
app.include_router(routes_profile.router, prefix="/api", tags=["profile"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
