from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.exceptions import TransactionStoreError

logger = logging.getLogger(__name__)


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": message,
                "status_code": status_code,
                "path": str(request.url.path),
            }
        },
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except StarletteHTTPException as e:
            return error_response(request, e.status_code, e.detail)
        except TransactionStoreError as e:
            logger.error(
                f"Transaction store unavailable: {e}",
                extra={
                    "path": str(request.url.path),
                    "method": request.method,
                    **e.details,
                },
            )
            return error_response(
                request,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "Transaction data is temporarily unavailable",
            )
        except Exception as e:
            logger.error(
                f"Unhandled exception: {e}",
                exc_info=True,
                extra={
                    "path": str(request.url.path),
                    "method": request.method,
                },
            )

            error_detail = str(e) if request.app.debug else "Internal server error"
            return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, error_detail)
