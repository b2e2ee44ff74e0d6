"""
    Centralized exception handling for the FastAPI application.
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class ImageNotFoundException(APIException):
    """Exception for when an image is not found."""
    def __init__(self, image_id: str):
        super().__init__(status_code=404, detail=f"Image with ID '{image_id}' not found.")

class MissingFileException(APIException):
    """Exception for requests without a file payload."""
    def __init__(self, detail: str = "No file uploaded"):
        super().__init__(status_code=400, detail=detail)

class UnsupportedTypeException(APIException):
    """Exception for content types outside the allow-list."""
    def __init__(self, content_type: str):
        super().__init__(status_code=400, detail=f"Unsupported file type: {content_type}")

class PayloadTooLargeException(APIException):
    """Exception for uploads above the configured size limit."""
    def __init__(self, limit: int):
        readable = f"{limit // (1024 * 1024)}MB" if limit >= 1024 * 1024 else f"{limit} bytes"
        super().__init__(status_code=413, detail=f"File size exceeds {readable} limit")

class UploadFailedException(APIException):
    """Exception for storage provider upload failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class TooManyIdsException(APIException):
    """Exception for batch requests above the id cap."""
    def __init__(self, limit: int):
        super().__init__(status_code=400, detail=f"Maximum {limit} IDs allowed per request")

class InvalidRequestException(APIException):
    """Exception for malformed request payloads."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class PersistenceException(APIException):
    """Exception for failures writing the metadata store."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class UnauthorizedException(APIException):
    """Exception for requests without a valid API key."""
    def __init__(self):
        super().__init__(status_code=401, detail="Valid API key required")

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    if exc.status_code >= 500:
        log.error(f"API Exception: {exc.detail}", exc_info=exc)
    else:
        log.info("API Exception %s: %s", exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
