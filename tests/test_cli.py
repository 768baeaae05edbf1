import json

import pytest

from app.modules.flashcards import cli
from app.modules.flashcards.main import FlashcardsGenerator
from helpers import make_cards


@pytest.fixture
def use_fake(monkeypatch, fake_gemini):
    def install(api_key="test-key"):
        class FakeService(FlashcardsGenerator):
            def __init__(self):
                super().__init__(fake_gemini.generator(api_key=api_key))

        monkeypatch.setattr(cli, "FlashcardsGenerator", FakeService)

    return install


def test_generate_prints_result_json(tmp_path, capsys, fake_gemini, use_fake):
    use_fake()
    fake_gemini.reply_cards(make_cards(2))
    note = tmp_path / "note.md"
    note.write_text("Enzymes lower the activation energy of reactions.", encoding="utf-8")
    existing = tmp_path / "existing.txt"
    existing.write_text("What is an enzyme?\n\n", encoding="utf-8")

    code = cli.main(
        ["generate", "--file", str(note), "--count", "2", "--difficulty", "hard", "--existing", str(existing)]
    )

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert [c["question"] for c in output["flashcards"]] == ["Q1?", "Q2?"]
    prompt = fake_gemini.last_body()["contents"][0]["parts"][0]["text"]
    assert "What is an enzyme?" in prompt
    assert "at a hard difficulty level" in prompt


def test_generate_validation_error_exits_1(tmp_path, capsys, fake_gemini, use_fake):
    use_fake()
    note = tmp_path / "note.md"
    note.write_text("tiny", encoding="utf-8")

    assert cli.main(["generate", "--file", str(note)]) == 1
    assert "at least 10 characters" in capsys.readouterr().err
    assert fake_gemini.requests == []


def test_check_key_without_key(capsys, use_fake):
    use_fake(api_key=None)

    assert cli.main(["check-key"]) == 1
    assert "GEMINI_API_KEY" in capsys.readouterr().err


def test_check_key_valid(capsys, fake_gemini, use_fake):
    use_fake()
    fake_gemini.reply_text("hello")

    assert cli.main(["check-key"]) == 0
    assert "valid" in capsys.readouterr().out
