import json

import httpx

from app.modules.flashcards.client import GeminiClient
from app.modules.flashcards.generator import FlashcardGenerator


def gemini_envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeGemini:
    """Queue of canned generateContent responses behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def reply_cards(self, cards: list[dict]) -> None:
        self.responses.append(
            httpx.Response(200, json=gemini_envelope(json.dumps(cards)))
        )

    def reply_text(self, text: str) -> None:
        self.responses.append(httpx.Response(200, json=gemini_envelope(text)))

    def reply(self, response: httpx.Response) -> None:
        self.responses.append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, text="no response queued")
        return self.responses.pop(0)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)

    def client(self, api_key: str | None = "test-key") -> GeminiClient:
        return GeminiClient(
            api_key,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)),
        )

    def generator(self, api_key: str | None = "test-key") -> FlashcardGenerator:
        return FlashcardGenerator(self.client(api_key))


def make_cards(n: int, prefix: str = "Q") -> list[dict]:
    return [
        {"question": f"{prefix}{i}?", "answer": f"A{i}", "difficulty": "medium"}
        for i in range(1, n + 1)
    ]


