from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from app.modules.flashcards.errors import FlashcardGenerationError
from app.modules.flashcards.main import FlashcardsGenerator


def _read_existing(path: str | None) -> list[str]:
    """One existing question per non-blank line."""
    if not path:
        return []
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashcards-gen", description="Flashcards generator CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate flashcards from a note file")
    g.add_argument("--file", "-f", required=True, help="Path to the note text")
    g.add_argument("--count", "-n", type=int, default=10, help="Number of cards")
    g.add_argument(
        "--difficulty",
        "-d",
        default="medium",
        choices=["easy", "medium", "hard", "all"],
        help="Difficulty tier (all is sent as medium)",
    )
    g.add_argument("--instructions", "-i", help="Custom instructions for the model")
    g.add_argument(
        "--existing",
        help="File with existing questions to avoid, one per line",
    )

    sub.add_parser("check-key", help="Validate the configured Gemini API key")

    args = parser.parse_args(argv)
    try:
        if args.cmd == "generate":
            source_text = Path(args.file).read_text(encoding="utf-8")
            svc = FlashcardsGenerator()
            result = svc.generate_sync(
                source_text,
                count=args.count,
                difficulty=args.difficulty,
                instructions=args.instructions,
                existing=_read_existing(args.existing),
            )
            print(json.dumps(FlashcardsGenerator.to_jsonable(result), indent=2))
            return 0
        if args.cmd == "check-key":
            valid = asyncio.run(FlashcardsGenerator().check_key())
            print("API key is valid" if valid else "API key is invalid")
            return 0 if valid else 1
    except FlashcardGenerationError as e:
        print(e.user_message, file=sys.stderr)
        return 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
