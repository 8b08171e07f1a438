# middleware/error_handler.py
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pymongo.errors import ConnectionFailure
import asyncio
import logging
import traceback
from typing import Callable

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, message: str, path: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "path": path,
        }
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware for the FastAPI application
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            response = await call_next(request)
            return response

        except HTTPException as e:
            # Let FastAPI handle HTTP exceptions normally
            raise e

        except ValueError as e:
            logger.warning(f"Validation error on {request.url}: {str(e)}")
            return _error(400, "Validation Error", str(e), request.url.path)

        except (ConnectionError, ConnectionFailure) as e:
            logger.error(f"Connection error on {request.url}: {str(e)}")
            return _error(503, "Service Unavailable", "Database connection error", request.url.path)

        except asyncio.TimeoutError as e:
            logger.error(f"Query timeout on {request.url}")
            return _error(504, "Gateway Timeout", "Database query timed out", request.url.path)

        except Exception as e:
            # Handle all other unexpected errors
            logger.error(f"Unexpected error on {request.url}: {str(e)}")
            logger.error(f"Traceback: {traceback.format_exc()}")
            return _error(500, "Internal Server Error", "An unexpected error occurred", request.url.path)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters are client errors: 400, not 422."""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}".lstrip(": ")
        for err in errors
    ) or "Invalid request"
    logger.warning(f"Invalid request on {request.url}: {message}")
    return _error(400, "Validation Error", message, request.url.path)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(ErrorHandlerMiddleware)
