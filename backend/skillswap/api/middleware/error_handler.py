"""
Global exception handlers. Map domain exceptions to HTTP responses.
"""
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from skillswap.domain.errors import (
    InsufficientAnswers,
    InvalidInput,
    InvalidTransition,
    NotFound,
    SwapDomainError,
    Unauthorized,
)
from skillswap.services.llm.base import LLMServiceError
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)

DOMAIN_STATUS: dict[type[SwapDomainError], int] = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    InsufficientAnswers: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(error: SwapDomainError) -> int:
    for error_type, code in DOMAIN_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def domain_http_error(error: SwapDomainError) -> HTTPException:
    """Turn a returned domain error into an HTTPException for the route to raise."""
    return HTTPException(status_code=status_for(error), detail={"code": error.code, "message": error.message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SwapDomainError)
    async def domain_exception_handler(
        request: Request, exc: SwapDomainError
    ) -> JSONResponse:
        logger.debug("Domain error", extra={"code": exc.code, "path": request.url.path})
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": {"code": exc.code, "message": exc.message}},
        )

    @app.exception_handler(LLMServiceError)
    async def llm_exception_handler(
        request: Request, exc: LLMServiceError
    ) -> JSONResponse:
        logger.warning("LLM service unavailable", extra={"error": str(exc)[:200]})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "AI assessment is temporarily unavailable. Please try again."},
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        logger.debug("Validation error", extra={"errors": errors})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(500)
    async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An unexpected error occurred"},
        )
