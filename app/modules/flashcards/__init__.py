"""Flashcards module exports."""

from .models.flashcards import Difficulty, Flashcard, GenerationRequest, GenerationResult
from .generator import FlashcardGenerator
from .main import FlashcardsGenerator

__all__ = [
    "Difficulty",
    "Flashcard",
    "GenerationRequest",
    "GenerationResult",
    "FlashcardGenerator",
    "FlashcardsGenerator",
]
