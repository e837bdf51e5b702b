"""
Tests for the verse finder: name letters, prompts per mode and reply parsing.
"""

import asyncio

import pytest

from conftest import FakeCollaborator
from panim.errors import CollaboratorError, EmptyInputError
from panim.gematria import score
from panim.verses import (
    VERSE_COUNT,
    find_verses,
    gematria_prompt,
    name_letters,
    name_prompt,
    parse_verses,
)

REPLY = "**בראשית ברא אלהים**\n\n# ויאמר אלהים יהי אור\n  \nוירא אלהים את האור\n"


def run(coro):
    return asyncio.run(coro)


class TestNameLetters:

    def test_first_and_last(self):
        assert name_letters("דוד") == ("ד", "ד")
        assert name_letters("  אברהם ") == ("א", "ם")

    def test_ignores_marks_and_latin(self):
        assert name_letters("שָׂרָה Sarah") == ("ש", "ה")

    def test_spaces_inside_full_name(self):
        assert name_letters("משה רבנו") == ("מ", "ו")

    @pytest.mark.parametrize("text", ["", "א", "a1", " ב "])
    def test_under_two_letters(self, text):
        with pytest.raises(EmptyInputError, match="at least 2"):
            name_letters(text)


class TestPrompts:

    def test_name_prompt(self):
        prompt = name_prompt("ד", "ד")
        assert f"Find {VERSE_COUNT} verses" in prompt
        assert "start with the letter 'ד' and end with the letter 'ד'" in prompt
        assert "one per line" in prompt

    def test_gematria_prompt(self):
        prompt = gematria_prompt(26)
        assert "of exactly 26" in prompt
        assert "close to 26" in prompt
        assert "citation" in prompt

    def test_parse_strips_markup_and_blank_lines(self):
        assert parse_verses(REPLY) == [
            "בראשית ברא אלהים",
            "ויאמר אלהים יהי אור",
            "וירא אלהים את האור",
        ]
        assert parse_verses(None) == []


class TestFindVerses:

    def test_name_mode(self):
        collab = FakeCollaborator(reply=REPLY)
        search = run(find_verses("רחל", "name", collab))
        assert (search.first, search.last) == ("ר", "ל")
        assert search.value is None
        assert len(search.verses) == 3

        query, instruction, schema = collab.calls[-1]
        assert query == name_prompt("ר", "ל")
        assert instruction == ""
        assert schema is None

    def test_gematria_mode(self):
        collab = FakeCollaborator(reply=REPLY)
        search = run(find_verses("יהוה", "gematria", collab))
        assert search.value == score("יהוה") == 26
        assert collab.calls[-1][0] == gematria_prompt(26)

    def test_gematria_mode_number(self):
        collab = FakeCollaborator(reply=REPLY)
        assert run(find_verses(" 358 ", "gematria", collab)).value == 358

    def test_short_name_never_reaches_service(self):
        collab = FakeCollaborator(reply=REPLY)
        with pytest.raises(EmptyInputError):
            run(find_verses("א", "name", collab))
        assert collab.calls == []

    def test_blank_text(self):
        with pytest.raises(EmptyInputError):
            run(find_verses("  ", "gematria", FakeCollaborator(reply=REPLY)))

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="mode"):
            run(find_verses("דוד", "rhyme", FakeCollaborator(reply=REPLY)))

    def test_service_failure_propagates(self):
        collab = FakeCollaborator(error=CollaboratorError("HTTP 500: boom"))
        with pytest.raises(CollaboratorError):
            run(find_verses("דוד", "name", collab))
