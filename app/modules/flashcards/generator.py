"""Flashcard generator: validate, build prompt, call Gemini once, parse.

``FlashcardGenerator`` takes its ``GeminiClient`` as a constructor argument
so callers and tests decide which backend it talks to.
"""

from __future__ import annotations

from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.client import GeminiClient
from app.modules.flashcards.errors import ParseError, ValidationError
from app.modules.flashcards.models.flashcards import (
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
)
from app.modules.flashcards.parser import (
    estimate_cost_cents,
    estimate_tokens,
    parse_flashcards,
)
from app.modules.flashcards.prompts import build_flashcard_prompt

logger = get_logger(__name__)


def validate_request(request: GenerationRequest, *, max_count: int) -> None:
    """Reject out-of-contract input before any prompt is built or sent."""
    text = (request.source_text or "").strip()
    if not text:
        raise ValidationError("Note content is required", field="source_text")
    min_length = settings.limits.min_source_length
    if len(text) < min_length:
        raise ValidationError(
            f"Note content must be at least {min_length} characters long",
            field="source_text",
        )
    if request.requested_count < 1 or request.requested_count > max_count:
        raise ValidationError(
            f"Minimum count must be between 1 and {max_count}",
            field="requested_count",
        )


class FlashcardGenerator:
    def __init__(
        self,
        client: GeminiClient,
        config: Optional[GenerationConfig] = None,
    ) -> None:
        self.client = client
        self.config = config or GenerationConfig()

    @classmethod
    def from_settings(cls) -> "FlashcardGenerator":
        return cls(GeminiClient.from_settings())

    async def generate(
        self,
        request: GenerationRequest,
        *,
        max_count: Optional[int] = None,
    ) -> GenerationResult:
        limit = max_count if max_count is not None else settings.limits.max_generate_count
        validate_request(request, max_count=limit)
        self.client.ensure_configured()

        prompt = build_flashcard_prompt(request)
        logger.info(
            f"Requesting {request.requested_count} {request.difficulty.value} flashcards "
            f"(dedupe={len(request.dedupe_context or [])})"
        )
        raw_text = await self.client.generate_text(prompt, self.config)

        try:
            flashcards = parse_flashcards(raw_text)
        except ParseError as e:
            logger.error(f"Failed to parse flashcard response: {e}")
            raise

        tokens = estimate_tokens(prompt + raw_text)
        logger.info(f"Generated {len(flashcards)} flashcards (~{tokens} tokens)")
        return GenerationResult(
            flashcards=flashcards,
            estimated_tokens=tokens,
            estimated_cost_cents=estimate_cost_cents(tokens),
        )

