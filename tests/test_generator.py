import httpx
import pytest

from app.modules.flashcards.errors import ConfigurationError, ParseError, ValidationError
from app.modules.flashcards.generator import validate_request
from app.modules.flashcards.models import GenerationRequest
from app.modules.flashcards.parser import estimate_tokens
from helpers import make_cards

NOTE = "Mitochondria are the powerhouse of the cell and make ATP."


@pytest.mark.asyncio
async def test_generate_returns_cards_and_estimates(fake_gemini):
    fake_gemini.reply_cards(make_cards(3))
    generator = fake_gemini.generator()

    result = await generator.generate(GenerationRequest(source_text=NOTE, requested_count=3))

    assert [c.question for c in result.flashcards] == ["Q1?", "Q2?", "Q3?"]
    prompt = fake_gemini.last_body()["contents"][0]["parts"][0]["text"]
    assert "Create exactly 3 flashcards" in prompt
    assert result.estimated_tokens > estimate_tokens(prompt)
    assert len(fake_gemini.requests) == 1


@pytest.mark.asyncio
async def test_more_or_fewer_cards_than_requested_are_kept(fake_gemini):
    fake_gemini.reply_cards(make_cards(7))

    result = await fake_gemini.generator().generate(
        GenerationRequest(source_text=NOTE, requested_count=5)
    )

    assert len(result.flashcards) == 7


@pytest.mark.parametrize(
    "source_text, count, field",
    [
        ("", 5, "source_text"),
        ("too short", 5, "source_text"),
        (NOTE, 0, "requested_count"),
        (NOTE, 31, "requested_count"),
    ],
)
@pytest.mark.asyncio
async def test_invalid_requests_never_reach_the_network(fake_gemini, source_text, count, field):
    generator = fake_gemini.generator()

    with pytest.raises(ValidationError) as exc:
        await generator.generate(
            GenerationRequest(source_text=source_text, requested_count=count)
        )

    assert exc.value.field == field
    assert fake_gemini.requests == []


def test_reforge_limit_allows_larger_counts():
    validate_request(GenerationRequest(source_text=NOTE, requested_count=50), max_count=50)
    with pytest.raises(ValidationError, match="between 1 and 50"):
        validate_request(
            GenerationRequest(source_text=NOTE, requested_count=51), max_count=50
        )


@pytest.mark.asyncio
async def test_missing_key_is_configuration_error(fake_gemini):
    with pytest.raises(ConfigurationError):
        await fake_gemini.generator(api_key=None).generate(
            GenerationRequest(source_text=NOTE, requested_count=2)
        )
    assert fake_gemini.requests == []


@pytest.mark.asyncio
async def test_garbage_response_is_parse_error(fake_gemini):
    fake_gemini.reply(
        httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": "no cards"}]}}]}
        )
    )

    with pytest.raises(ParseError):
        await fake_gemini.generator().generate(
            GenerationRequest(source_text=NOTE, requested_count=2)
        )
