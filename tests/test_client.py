import httpx
import pytest

from app.modules.flashcards.client import GeminiClient, extract_generated_text
from app.modules.flashcards.errors import ConfigurationError, UpstreamError
from app.modules.flashcards.models import GenerationConfig


@pytest.mark.asyncio
async def test_generate_text_sends_prompt_and_config(fake_gemini):
    fake_gemini.reply_text("[]")
    client = fake_gemini.client()

    text = await client.generate_text(
        "hello", GenerationConfig(temperature=0.2, top_p=0.9, top_k=20, max_output_tokens=128)
    )

    assert text == "[]"
    request = fake_gemini.requests[-1]
    assert request.method == "POST"
    assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
    assert request.url.params["key"] == "test-key"
    assert fake_gemini.last_body() == {
        "contents": [{"parts": [{"text": "hello"}]}],
        "generationConfig": {
            "temperature": 0.2,
            "topK": 20,
            "topP": 0.9,
            "maxOutputTokens": 128,
        },
    }


@pytest.mark.asyncio
async def test_missing_key_raises_before_any_request(fake_gemini):
    client = fake_gemini.client(api_key="  ")

    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        await client.generate_text("hello")

    assert fake_gemini.requests == []


@pytest.mark.asyncio
async def test_error_status_becomes_upstream_error(fake_gemini):
    fake_gemini.reply(httpx.Response(429, text="quota exceeded"))

    with pytest.raises(UpstreamError) as exc:
        await fake_gemini.client().generate_text("hello")

    assert exc.value.status_code == 429
    assert exc.value.body == "quota exceeded"
    assert "Please try again" in exc.value.user_message


@pytest.mark.asyncio
async def test_unexpected_envelope_is_upstream_error(fake_gemini):
    fake_gemini.reply(httpx.Response(200, json={"candidates": []}))

    with pytest.raises(UpstreamError, match="Unexpected response structure"):
        await fake_gemini.client().generate_text("hello")


@pytest.mark.asyncio
async def test_timeout_is_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = GeminiClient(
        "key", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    with pytest.raises(UpstreamError, match="timed out"):
        await client.generate_text("hello")


@pytest.mark.asyncio
async def test_validate_api_key(fake_gemini):
    fake_gemini.reply_text("hi")
    fake_gemini.reply(httpx.Response(400, text="API key not valid"))
    client = fake_gemini.client()

    assert await client.validate_api_key() is True
    assert fake_gemini.last_body()["generationConfig"] == {"maxOutputTokens": 10}
    assert await client.validate_api_key() is False
    assert await fake_gemini.client(api_key=None).validate_api_key() is False


def test_extract_generated_text():
    assert extract_generated_text({"candidates": [{"content": {"parts": [{"text": "x"}]}}]}) == "x"
    assert extract_generated_text({"candidates": [{"content": {}}]}) is None
    assert extract_generated_text(None) is None
