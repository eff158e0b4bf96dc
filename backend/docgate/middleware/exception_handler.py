"""Exception handler middleware for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import DocGateException

logger = logging.getLogger(__name__)


async def docgate_exception_handler(request: Request, exc: DocGateException) -> JSONResponse:
    """
    Convert a DocGateException into its JSON error response.

    Client errors (4xx) are logged at INFO; store failures and other 5xx at ERROR.

    Args:
        request: FastAPI request object
        exc: DocGateException instance

    Returns:
        JSONResponse with error details
    """
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"DocGateException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )
