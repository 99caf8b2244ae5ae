import logging

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from microblog.core import error_codes

logger = logging.getLogger("uvicorn.error")


class CustomHTTPException(Exception):
    """A custom HTTPException that we can use for additional context."""
    def __init__(self, status_code: int, detail: str, error_code: str = None, headers: dict = None):
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code
        self.headers = headers
        super().__init__(detail)  # Initialize the base Exception with the detail message


class MicroblogError(Exception):
    """Base class for errors raised by the access-control and social-graph core."""
    status_code = 500
    error_code = error_codes.INTERNAL_ERROR
    headers = None

    def __init__(self, detail: str, error_code: str = None):
        self.detail = detail
        if error_code is not None:
            self.error_code = error_code
        super().__init__(detail)


class NotFoundError(MicroblogError):
    status_code = 404
    error_code = error_codes.NOT_FOUND

    def __init__(self, resource: str, field: str, value, error_code: str = None):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} not found with {field}: {value}", error_code)


class AlreadyExistsError(MicroblogError):
    status_code = 409
    error_code = error_codes.ALREADY_EXISTS

    def __init__(self, resource: str, field: str, value, error_code: str = None):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} already exists with {field}: {value}", error_code)


class InvalidOperationError(MicroblogError):
    status_code = 400
    error_code = error_codes.INVALID_OPERATION


class BadCredentialsError(MicroblogError):
    """Login failure. The message never says which credential was wrong."""
    status_code = 401
    error_code = error_codes.BAD_CREDENTIALS
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self):
        super().__init__("Bad credentials")


class UnauthenticatedError(MicroblogError):
    status_code = 401
    error_code = error_codes.UNAUTHENTICATED
    headers = {"WWW-Authenticate": "Bearer"}


class TokenRejectedError(MicroblogError):
    status_code = 401
    error_code = error_codes.TOKEN_REJECTED
    headers = {"WWW-Authenticate": "Bearer"}


class MalformedTokenError(TokenRejectedError):
    error_code = error_codes.TOKEN_MALFORMED


class ExpiredTokenError(TokenRejectedError):
    error_code = error_codes.TOKEN_EXPIRED


class RevokedTokenError(TokenRejectedError):
    error_code = error_codes.TOKEN_REVOKED


class StaleTokenError(TokenRejectedError):
    """Signed for an account that no longer exists under that id and username."""
    error_code = error_codes.TOKEN_STALE


class AccessDeniedError(MicroblogError):
    """Authenticated, but not allowed to touch the resource."""
    status_code = 403
    error_code = error_codes.ACCESS_DENIED


class DependencyUnavailableError(MicroblogError):
    status_code = 503
    error_code = error_codes.DEPENDENCY_UNAVAILABLE


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors and return a structured JSON response."""
    logger.error(f"Validation error on {request.url}: {exc.errors()}")

    errors = exc.errors()
    # Sanitize un-serializable objects in ctx
    for error in errors:
        ctx = error.get("ctx")
        if ctx and isinstance(ctx.get("error"), Exception):
            ctx["error"] = str(ctx["error"])

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors,
            "message": "Validation failed. Please check your request data.",
        },
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Custom HTTP exception handler for better error responses."""
    if isinstance(exc, CustomHTTPException):
        logger.error(f"Custom HTTP error on {request.url}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error_code": exc.error_code
            },
            headers=exc.headers or {},
        )
    elif isinstance(exc, HTTPException):
        logger.error(f"HTTP error on {request.url}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers or {},
        )

    logger.error(f"Unexpected error on {request.url}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred"},
    )


async def domain_exception_handler(request: Request, exc: MicroblogError) -> JSONResponse:
    """Translate core errors into the same payload shape as CustomHTTPException."""
    if isinstance(exc, DependencyUnavailableError):
        logger.error(f"Dependency unavailable on {request.url}: {exc.detail}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_code": exc.error_code
        },
        headers=exc.headers or {},
    )


async def dependency_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Store failures and timeouts surface as 503 without retrying."""
    logger.error(f"Backing store failure on {request.url}: {exc!r}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": "A backing service is unavailable. Please try again later.",
            "error_code": error_codes.DEPENDENCY_UNAVAILABLE
        },
    )
