# ============================================================================
# FILE: app/core/responses.py
# Uniform JSON envelope used by every endpoint and error handler
# ============================================================================
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from typing import Any, List, Optional


def envelope(
    status_code: int,
    data: Any = None,
    message: str = "Success",
    errors: Optional[List[str]] = None,
) -> dict:
    """
    Build the response body

    Shape:
        {"statusCode", "data", "message", "success", "errors"}
    """
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": 200 <= status_code < 300,
        "errors": errors or [],
    }


def api_response(
    status_code: int,
    data: Any = None,
    message: str = "Success",
    errors: Optional[List[str]] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Wrap data in the envelope and return it as a JSONResponse"""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(status_code, data, message, errors)),
        headers=headers,
    )
