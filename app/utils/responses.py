"""
Standardized response utilities
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.schemas.common import ErrorResponse


def success_response(status_code: int = 200, **payload: Any) -> JSONResponse:
    """Create standardized success response"""
    return JSONResponse(
        content=jsonable_encoder({"success": True, **payload}),
        status_code=status_code,
    )


def error_response(error: str, status_code: int = 200, **extra: Any) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(error=error)
    return JSONResponse(
        content=jsonable_encoder({**response.model_dump(), **extra}),
        status_code=status_code,
    )


def rate_limit_error() -> JSONResponse:
    """Create rate limit error"""
    return error_response("Rate limit exceeded. Please try again later.", status_code=429)
