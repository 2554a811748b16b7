# storefront/api/error_handlers.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import ErrorCode, StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_CODES = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.VARIANT_NOT_FOUND: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PRODUCT_NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_STOCK: 409,
    ErrorCode.CONCURRENT_MODIFICATION: 409,
    ErrorCode.DUPLICATE_REQUEST: 429,
    ErrorCode.STORAGE_FAILURE: 500,
    ErrorCode.STATUS_SEED_FAILURE: 500,
}


def setup_error_handlers(app: FastAPI) -> None:
    """Register the JSON error format {"error": {"code", "message", ...}}."""

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        status_code = STATUS_CODES.get(exc.code, 400)
        log = logger.error if status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {status_code} {exc.code.value}: {exc.message}")
        return JSONResponse(status_code=status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": errors,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An internal server error occurred",
                }
            },
        )
