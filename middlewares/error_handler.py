import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from database.db import DataStoreError
from schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str, request: Request) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message),
        trace_id=request.headers.get("X-Request-ID"),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    @app.exception_handler(DataStoreError)
    async def data_store_error_handler(request: Request, exc: DataStoreError):
        logger.error("data store error on %s %s: %s", request.method, request.url.path, exc)
        return _error(502, "DATA_STORE_ERROR", str(exc), request)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "INTERNAL_ERROR", str(exc), request)
