"""Error taxonomy for flashcard generation.

All four kinds are caught at the API boundary and turned into a displayed
message (see ``app.apis.errors``); none of them is retried automatically.
"""

from __future__ import annotations

from typing import Optional


class FlashcardGenerationError(Exception):
    """Base class for failures while generating flashcards."""

    user_message = "Failed to generate flashcards. Please try again."

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(FlashcardGenerationError):
    """The generation endpoint credential is missing."""

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message


class ValidationError(FlashcardGenerationError):
    """Caller-supplied parameters are out of contract; raised before any network call."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message


class UpstreamError(FlashcardGenerationError):
    """Non-success status or malformed envelope from the generation endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(FlashcardGenerationError):
    """Generated text could not be turned into a list of flashcards."""

    def __init__(self, message: str, *, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index
