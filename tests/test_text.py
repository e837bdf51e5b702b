"""
Tests for the stateless text tools: mark stripping, acronyms, statistics.
"""

import pytest

from panim.text import acronym, strip_marks, text_stats


class TestStripMarks:

    def test_removes_nikud(self):
        assert strip_marks("בְּרֵאשִׁית בָּרָא") == "בראשית ברא"

    def test_removes_cantillation(self):
        assert strip_marks("בְּרֵאשִׁ֖ית") == "בראשית"

    def test_letters_and_spaces_untouched(self):
        text = "אבג דהו זחט ךםןףץ"
        assert strip_marks(text) == text

    def test_idempotent(self):
        once = strip_marks("וַיֹּ֣אמֶר אֱלֹהִ֑ים")
        assert strip_marks(once) == once

    def test_empty(self):
        assert strip_marks("") == ""


class TestAcronym:

    def test_first_letters(self):
        assert acronym("בראשית ברא אלוהים") == "בבא"

    def test_last_letters(self):
        assert acronym("בראשית ברא אלוהים", mode="last") == "תאם"

    def test_punctuation_and_nikud_ignored(self):
        assert acronym("שָׁלוֹם, עוֹלָם!") == "שע"

    def test_non_hebrew_tokens_skipped(self):
        assert acronym("hello שלום 42\nעולם") == "שע"

    def test_empty(self):
        assert acronym("") == ""

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            acronym("שלום", mode="middle")


class TestTextStats:

    def test_counts(self):
        stats = text_stats("שלום עולם.\nמה נשמע?")
        assert stats.words == 4
        assert stats.lines == 2
        assert stats.sentences == 2
        assert stats.chars == len("שלום עולם.\nמה נשמע?")
        assert stats.chars_no_spaces == 16

    def test_empty(self):
        stats = text_stats("")
        assert (stats.chars, stats.words, stats.lines, stats.sentences) == (0, 0, 0, 0)

    def test_whitespace_only(self):
        stats = text_stats("   \n  ")
        assert stats.words == 0
        assert stats.lines == 0
        assert stats.chars_no_spaces == 0
