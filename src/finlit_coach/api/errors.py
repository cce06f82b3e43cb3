"""Exception handlers mapping application errors to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finlit_coach.errors import (
    GenerationError,
    GenerationInProgressError,
    QuizStateError,
    StorageError,
)

logger = structlog.get_logger()


async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("storage_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        {"detail": "Storage is temporarily unavailable, please retry", "retryable": True},
        status_code=503,
    )


async def _quiz_state_error(request: Request, exc: QuizStateError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=409)


async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
    if isinstance(exc, GenerationInProgressError):
        return JSONResponse({"detail": str(exc)}, status_code=409)
    logger.error("generation_error", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": "Could not generate a learning plan"}, status_code=500)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorageError, _storage_error)
    app.add_exception_handler(QuizStateError, _quiz_state_error)
    app.add_exception_handler(GenerationError, _generation_error)
