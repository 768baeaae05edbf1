"""Map flashcard generation errors onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    ConfigurationError,
    FlashcardGenerationError,
    ParseError,
    UpstreamError,
    ValidationError,
)

logger = get_logger(__name__)


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Generation not configured: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": exc.user_message, "code": "configuration_error"},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": exc.user_message,
            "field": exc.field,
            "code": "validation_error",
        },
    )


async def generation_error_handler(
    request: Request, exc: FlashcardGenerationError
) -> JSONResponse:
    # Upstream bodies and parse details stay in the logs
    code = "parse_error" if isinstance(exc, ParseError) else "upstream_error"
    logger.error(f"Flashcard generation failed on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.user_message, "code": code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConfigurationError, configuration_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, generation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ParseError, generation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(FlashcardGenerationError, generation_error_handler)  # type: ignore[arg-type]
