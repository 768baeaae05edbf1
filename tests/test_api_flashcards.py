import asyncio

import httpx
import pytest
from sqlalchemy import select

from app.core.db.schemas import GenerationRequestLog, GenerationStatus
from helpers import make_cards

API = "/v1"
NOTE_TEXT = "The mitochondria is the powerhouse of the cell. It produces ATP."


@pytest.fixture
def note(client):
    return client.post(f"{API}/notes", json={"title": "Cells", "content": NOTE_TEXT}).json()


def _generate(client, note_id, **body):
    return client.post(f"{API}/notes/{note_id}/flashcards/generate", json=body)


def _prompt(fake_gemini):
    return fake_gemini.last_body()["contents"][0]["parts"][0]["text"]


def test_generate_saves_a_set(client, fake_gemini, note):
    fake_gemini.reply_cards(make_cards(4))

    response = _generate(client, note["id"], min_count=4, difficulty="easy")

    assert response.status_code == 200
    body = response.json()
    assert body["preview"] is False
    assert len(body["flashcards"]) == 4
    assert body["flashcard_set"]["title"] == "Flashcards from: Cells"
    assert body["flashcard_set"]["total_cards"] == 4
    assert "at a easy difficulty level" in _prompt(fake_gemini)

    detail = client.get(f"{API}/flashcards/sets/{body['flashcard_set']['id']}").json()
    assert [c["question"] for c in detail["flashcards"]] == ["Q1?", "Q2?", "Q3?", "Q4?"]


def test_generate_preview_then_save(client, fake_gemini, note):
    fake_gemini.reply_cards(make_cards(2))

    preview = _generate(client, note["id"], min_count=2, preview_mode=True).json()

    assert preview["preview"] is True
    assert preview["flashcard_set"] is None
    assert client.get(f"{API}/flashcards/sets").json() == []

    saved = client.post(
        f"{API}/flashcards/sets",
        json={"note_id": note["id"], "flashcards": preview["flashcards"]},
    )
    assert saved.status_code == 201
    assert saved.json()["total_cards"] == 2
    assert len(client.get(f"{API}/flashcards/sets").json()) == 1


def test_generate_remembers_preferences(client, fake_gemini, note):
    fake_gemini.reply_cards(make_cards(7))
    _generate(client, note["id"], min_count=7, custom_prompt="Focus on ATP")

    prefs = client.get(f"{API}/flashcards/preferences/generate").json()

    assert prefs["kind"] == "generate"
    assert prefs["preferences"]["min_count"] == 7
    assert prefs["preferences"]["custom_prompt"] == "Focus on ATP"
    assert "CRITICAL: Follow these specific instructions: Focus on ATP" in _prompt(fake_gemini)


def test_validation_errors_map_to_422_without_calling_gemini(client, fake_gemini, note):
    response = _generate(client, note["id"], min_count=31)

    assert response.status_code == 422
    assert response.json()["field"] == "min_count"
    assert response.json()["detail"] == "Minimum count must be between 1 and 30"
    assert fake_gemini.requests == []


def test_rejected_count_is_not_remembered(client, fake_gemini, note):
    assert _generate(client, note["id"], min_count=40).status_code == 422
    fake_gemini.reply_cards(make_cards(5))

    response = _generate(client, note["id"])

    assert response.status_code == 200
    assert response.json()["flashcard_set"]["total_cards"] == 5
    prefs = client.get(f"{API}/flashcards/preferences/generate").json()
    assert prefs["preferences"]["min_count"] == 5


def test_short_note_is_rejected(client, fake_gemini):
    short = client.post(f"{API}/notes", json={"title": "Tiny", "content": "hi"}).json()

    response = _generate(client, short["id"])

    assert response.status_code == 422
    assert response.json()["detail"] == "Note content must be at least 10 characters long"


def test_upstream_failure_is_502_and_logged(client, fake_gemini, note, session_maker):
    fake_gemini.reply(httpx.Response(500, text="internal secret detail"))

    response = _generate(client, note["id"])

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to generate flashcards. Please try again."
    assert "secret" not in response.text

    async def failed_rows():
        async with session_maker() as session:
            rows = await session.execute(select(GenerationRequestLog))
            return rows.scalars().all()

    rows = asyncio.run(failed_rows())
    assert [r.status for r in rows] == [GenerationStatus.FAILED]


def test_unparseable_response_is_502(client, fake_gemini, note):
    fake_gemini.reply_text("Sorry, I cannot help with that.")

    response = _generate(client, note["id"])

    assert response.status_code == 502
    assert response.json()["code"] == "parse_error"


def test_missing_api_key_is_503(client, fake_gemini, note):
    from main import app
    from app.apis.deps import get_flashcards_generator
    from app.modules.flashcards.main import FlashcardsGenerator

    app.dependency_overrides[get_flashcards_generator] = lambda: FlashcardsGenerator(
        fake_gemini.generator(api_key=None)
    )

    response = _generate(client, note["id"])

    assert response.status_code == 503
    assert "GEMINI_API_KEY" in response.json()["detail"]


def _saved_set(client, fake_gemini, note, n=2):
    fake_gemini.reply_cards(make_cards(n, prefix="Old"))
    return _generate(client, note["id"], min_count=n).json()["flashcard_set"]


def test_reforge_add_more(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    fake_gemini.reply_cards(make_cards(3, prefix="New"))

    response = client.post(
        f"{API}/flashcards/sets/{flashcard_set['id']}/reforge",
        json={"action": "add_more", "min_count": 3},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["flashcard_set"]["total_cards"] == 5
    assert [c["question"] for c in body["flashcard_set"]["flashcards"]] == [
        "Old1?", "Old2?", "New1?", "New2?", "New3?",
    ]
    prompt = _prompt(fake_gemini)
    assert "Existing flashcards (avoid repeating these topics):\nOld1?\nOld2?" in prompt


def test_reforge_regenerate_from_selected_section(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    fake_gemini.reply_cards(make_cards(1, prefix="Fresh"))

    response = client.post(
        f"{API}/flashcards/sets/{flashcard_set['id']}/reforge",
        json={
            "action": "regenerate",
            "min_count": 1,
            "use_selected_section": True,
            "selected_section": "ATP synthase spins like a turbine.",
        },
    )

    body = response.json()
    assert body["flashcard_set"]["total_cards"] == 1
    assert [c["question"] for c in body["flashcard_set"]["flashcards"]] == ["Fresh1?"]
    assert "Note Content:\nATP synthase spins like a turbine." in _prompt(fake_gemini)


def test_reforge_selected_section_required(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    calls = len(fake_gemini.requests)

    response = client.post(
        f"{API}/flashcards/sets/{flashcard_set['id']}/reforge",
        json={"use_selected_section": True},
    )

    assert response.status_code == 422
    assert response.json()["field"] == "selected_section"
    assert len(fake_gemini.requests) == calls


def test_reforge_preview_then_apply(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    fake_gemini.reply_cards(make_cards(2, prefix="Peek"))
    url = f"{API}/flashcards/sets/{flashcard_set['id']}/reforge"

    preview = client.post(url, json={"preview_mode": True, "min_count": 2}).json()

    assert preview["preview"] is True
    assert preview["flashcard_set"]["total_cards"] == 2
    assert [c["question"] for c in preview["generated"]] == ["Peek1?", "Peek2?"]

    applied = client.post(
        url, json={"preview_mode": False, "flashcards": preview["generated"][:1]}
    ).json()

    assert applied["preview"] is False
    assert applied["flashcard_set"]["total_cards"] == 3


def test_blank_cards_are_rejected(client, fake_gemini, note):
    blank = [{"question": "   ", "answer": "  "}]

    saved = client.post(f"{API}/flashcards/sets", json={"flashcards": blank})

    assert saved.status_code == 422
    assert client.get(f"{API}/flashcards/sets").json() == []

    flashcard_set = _saved_set(client, fake_gemini, note)
    url = f"{API}/flashcards/sets/{flashcard_set['id']}/reforge"
    assert client.post(url, json={"flashcards": blank}).status_code == 422
    assert client.get(f"{API}/flashcards/sets/{flashcard_set['id']}").json()["total_cards"] == 2


def test_empty_previewed_batch_is_rejected(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    calls = len(fake_gemini.requests)

    response = client.post(
        f"{API}/flashcards/sets/{flashcard_set['id']}/reforge", json={"flashcards": []}
    )

    assert response.status_code == 422
    assert response.json()["field"] == "flashcards"
    assert len(fake_gemini.requests) == calls


def test_reforge_allows_up_to_fifty(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    fake_gemini.reply_cards(make_cards(40))

    response = client.post(
        f"{API}/flashcards/sets/{flashcard_set['id']}/reforge",
        json={"action": "regenerate", "min_count": 40},
    )

    assert response.status_code == 200
    assert response.json()["flashcard_set"]["total_cards"] == 40


def test_study_flow(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note, n=3)
    set_url = f"{API}/flashcards/sets/{flashcard_set['id']}"

    first = client.get(f"{set_url}/first").json()
    assert first["navigation"]["index"] == 0
    assert first["navigation"]["previous_id"] is None
    assert first["progress"] == {"total": 3, "mastered": 0, "percentage": 0}

    mastered = client.post(f"{API}/flashcards/cards/{first['card']['id']}/mastered").json()
    assert mastered["card"]["status"] == "mastered"
    assert mastered["progress"] == {"total": 3, "mastered": 1, "percentage": 33}

    second_id = first["navigation"]["next_id"]
    reviewed = client.post(
        f"{API}/flashcards/cards/{second_id}/review",
        json={"was_correct": True, "status": "learning"},
    ).json()
    assert reviewed["card"]["review_count"] == 1
    assert reviewed["card"]["correct_count"] == 1
    assert reviewed["navigation"]["index"] == 1

    last = client.get(f"{API}/flashcards/cards/{reviewed['navigation']['next_id']}").json()
    assert last["navigation"]["is_last"] is True
    assert client.get(f"{set_url}/progress").json()["percentage"] == 33


def test_sharing_and_public_view(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)
    public_url = f"{API}/public/flashcards/{flashcard_set['id']}"

    assert client.get(public_url).status_code == 404

    shared = client.patch(
        f"{API}/flashcards/sets/{flashcard_set['id']}/sharing", json={"is_public": True}
    )
    assert shared.json()["is_public"] is True

    public = client.get(public_url)
    assert public.status_code == 200
    assert len(public.json()["flashcards"]) == 2


def test_delete_set(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note)

    assert client.delete(f"{API}/flashcards/sets/{flashcard_set['id']}").status_code == 204
    assert client.get(f"{API}/flashcards/sets/{flashcard_set['id']}").status_code == 404


def test_preferences_endpoints(client):
    assert client.get(f"{API}/flashcards/preferences/reforge").json()["preferences"] == {
        "action": "add_more",
        "min_count": 3,
        "difficulty": "medium",
        "use_selected_section": False,
        "preview_mode": False,
    }

    updated = client.put(
        f"{API}/flashcards/preferences/reforge", json={"action": "regenerate"}
    )
    assert updated.json()["preferences"]["action"] == "regenerate"

    bad = client.put(f"{API}/flashcards/preferences/reforge", json={"min_count": 0})
    assert bad.status_code == 422
    assert client.get(f"{API}/flashcards/preferences/quiz").status_code == 422


def test_dashboard_stats(client, fake_gemini, note):
    flashcard_set = _saved_set(client, fake_gemini, note, n=4)
    first = client.get(f"{API}/flashcards/sets/{flashcard_set['id']}/first").json()
    client.post(f"{API}/flashcards/cards/{first['card']['id']}/mastered")

    stats = client.get(f"{API}/dashboard/stats").json()

    assert stats == {
        "notes": 1,
        "flashcard_sets": 1,
        "total_cards": 4,
        "mastered_cards": 1,
        "mastery_percentage": 25,
    }
