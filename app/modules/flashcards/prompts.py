"""Prompt construction for flashcard generation.

Pure string building: no network or database access happens here. Input
validation (minimum note length, count bounds) runs in the generator before
these functions are called.
"""

from __future__ import annotations

from typing import Iterable

from app.modules.flashcards.models.flashcards import Difficulty, GenerationRequest


DIFFICULTY_GUIDANCE = (
    "IMPORTANT: Difficulty should be based on concept complexity, NOT word count. "
    "All answers should be concise and to the point:\n"
    "- Easy: Basic facts, definitions, simple concepts\n"
    "- Medium: Application of concepts, moderate complexity\n"
    "- Hard: Advanced analysis, synthesis, complex relationships\n\n"
    "Keep all answers concise regardless of difficulty level to minimize token usage."
)

JSON_FORMAT_EXAMPLE = """[
  {
    "question": "What is...?",
    "answer": "The answer is...",
    "difficulty": "easy|medium|hard"
  }
]"""

MULTIPLE_CHOICE_INSTRUCTIONS = """SPECIAL INSTRUCTIONS FOR MULTIPLE CHOICE:
- FORMAT THE QUESTION WITH LINE BREAKS BETWEEN OPTIONS
- Question structure: "Which of the following is correct about [topic]?" followed by line break
- Then each option on its own line:
  A) [first option] (line break)
  B) [second option] (line break)
  C) [third option] (line break)
  D) [fourth option]
- The answer should only be the correct option letter (A, B, C, or D)
- Example format:
  "question": "Which of the following is correct about photosynthesis?
A) Plants convert sunlight into energy
B) Animals perform photosynthesis
C) Photosynthesis only occurs at night
D) No organisms use photosynthesis",
  "answer": "A"
- MANDATORY: Use actual line breaks between A), B), C), and D) options in the question field
- DO NOT put all options on the same line"""

CLOSING_INSTRUCTIONS = (
    "Please ensure the JSON is valid and properly formatted.\n"
    "IMPORTANT: Do not wrap the JSON in ```json or add any prefix/suffix.\n"
    "Do not include any additional text outside the JSON array."
)


def format_dedupe_context(questions: Iterable[str]) -> str:
    """Newline-join existing question texts, skipping blanks."""
    return "\n".join(q.strip() for q in questions if q and q.strip())


def wants_multiple_choice(custom_instructions: str | None) -> bool:
    return bool(custom_instructions) and "multiple choice" in custom_instructions.lower()


def _framing(count: int, difficulty: Difficulty) -> str:
    return (
        "You are an expert educator creating flashcards from study notes.\n\n"
        f"Please create {count} high-quality flashcards from the following note "
        f"content. The flashcards should be at a {difficulty.value} difficulty level."
    )


def _existing_block(existing: str, count: int) -> str:
    return (
        "Existing flashcards (avoid repeating these topics):\n"
        f"{existing}\n\n"
        f"Please generate {count} new flashcards that are different from the existing ones."
    )


def _numbered_instructions(count: int, has_existing: bool, custom: str) -> str:
    items = [
        f"Create exactly {count} flashcards",
        "Each flashcard should have a clear question and concise answer",
        "Questions should test understanding, not just memorization",
        "Answers should be detailed but concise (aim for 1-3 sentences max)",
        "Difficulty should reflect concept complexity, not answer length",
    ]
    if has_existing:
        items.append(
            "Focus on topics and concepts that are NOT already covered in the "
            "existing flashcards. Analyze the note content thoroughly to identify gaps."
        )
    if custom:
        items.append(f"CRITICAL: Follow these specific instructions: {custom}")
    items.append(
        "Format your response as a JSON array with this exact structure:\n"
        + JSON_FORMAT_EXAMPLE
    )
    lines = [f"{i}. {item}" for i, item in enumerate(items, start=1)]
    return "Instructions:\n" + "\n".join(lines)


def build_flashcard_prompt(request: GenerationRequest) -> str:
    """Build the single instruction string sent to the generation endpoint."""
    count = request.requested_count
    difficulty = Difficulty.coerce(request.difficulty)
    existing = format_dedupe_context(request.dedupe_context or [])
    custom = (request.custom_instructions or "").strip()

    sections = [_framing(count, difficulty), DIFFICULTY_GUIDANCE]
    if existing:
        sections.append(_existing_block(existing, count))
    sections.append(f"Note Content:\n{request.source_text}")
    sections.append(_numbered_instructions(count, bool(existing), custom))
    if wants_multiple_choice(custom):
        sections.append(MULTIPLE_CHOICE_INSTRUCTIONS)
    sections.append(CLOSING_INSTRUCTIONS)
    return "\n\n".join(sections)
