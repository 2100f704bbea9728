from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException


def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render every HTTPException (ours and Starlette's 404/405) in the error envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail),
        headers=getattr(exc, "headers", None),
    )
