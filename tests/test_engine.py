"""
Tests for the letter engine: normalizer, gematria scorer and cipher schemes.
"""

import pytest

from panim.ciphers import (
    CipherScheme,
    apply,
    build_table,
    get_scheme,
    list_schemes,
    scheme_pairs,
    validate,
)
from panim.errors import InvalidScheme, SchemeValidationError
from panim.gematria import cipher_score, letter_breakdown, score
from panim.letters import (
    ALEPH_BET,
    FINAL_LETTERS,
    LETTER_VALUES,
    canonicalize,
    canonicalize_text,
    final_form,
    is_final,
)

ALL_FORMS = ALEPH_BET + "".join(FINAL_LETTERS)
MIXED = "בְּרֵאשִׁית בָּרָא אֱלֹהִים, שלום-עולם! abc 123 ךםןףץ"


# =============================================================================
# NORMALIZER
# =============================================================================

class TestNormalizer:
    """Final forms resolve to medial letters; everything else passes through."""

    def test_final_forms(self):
        assert canonicalize("ך") == "כ"
        assert canonicalize("ם") == "מ"
        assert canonicalize("ן") == "נ"
        assert canonicalize("ף") == "פ"
        assert canonicalize("ץ") == "צ"

    def test_canonical_letters_are_fixed(self):
        for letter in ALEPH_BET:
            assert canonicalize(letter) == letter

    @pytest.mark.parametrize("ch", [" ", "a", "1", ",", "ְ", "־"])
    def test_other_characters_pass_through(self, ch):
        assert canonicalize(ch) == ch

    def test_table_is_total_over_canonical_letters(self):
        assert len(LETTER_VALUES) == 22
        assert set(LETTER_VALUES) == set(ALEPH_BET)
        for f in FINAL_LETTERS:
            assert canonicalize(f) in LETTER_VALUES

    def test_final_form_helpers(self):
        assert final_form("כ") == "ך"
        assert final_form("א") == "א"
        assert is_final("ץ")
        assert not is_final("צ")
        assert canonicalize_text("שלום ומלך") == "שלומ ומלכ"


# =============================================================================
# GEMATRIA
# =============================================================================

class TestGematria:
    """Standard values, summed per character."""

    def test_basic_sum(self):
        assert score("אבג") == 1 + 2 + 3 == 6

    def test_empty_and_non_hebrew(self):
        assert score("") == 0
        assert score("hello, world 42") == 0

    def test_mixed_script_counts_hebrew_only(self):
        assert score("abc אב 12") == 3

    def test_final_forms_score_like_medial(self):
        assert score("ם") == score("מ") == 40
        assert score("שלום") == 300 + 30 + 6 + 40

    def test_marks_are_ignored(self):
        assert score("בְּרֵאשִׁית") == score("בראשית") == 913

    def test_idempotent_on_canonicalization(self):
        assert score(canonicalize_text(MIXED)) == score(MIXED)

    def test_order_does_not_matter(self):
        assert score("תשר") == score("רשת") == 900

    def test_deterministic_and_non_negative(self):
        assert score(MIXED) == score(MIXED) >= 0

    def test_letter_breakdown(self):
        assert letter_breakdown("אב!ך") == [("א", 1), ("ב", 2), ("ך", 20)]

    def test_cipher_score(self):
        assert cipher_score("mirror-22", "אב") == score("תש") == 700


# =============================================================================
# CIPHERS
# =============================================================================

class TestCipherSchemes:
    """The three built-in schemes and the final-form rule."""

    def test_mirror_first_letters(self):
        assert apply("mirror-22", "אב") == "תש"

    def test_mirror_full_alphabet(self):
        assert apply("mirror-22", ALEPH_BET) == ALEPH_BET[::-1]

    def test_split_half(self):
        assert apply("split-half", "אל") == "לא"
        assert apply("split-half", ALEPH_BET) == ALEPH_BET[11:] + ALEPH_BET[:11]

    def test_decade_sum_pairs_sum_within_group(self):
        for a, b in scheme_pairs("decade-sum"):
            total = LETTER_VALUES[a] + LETTER_VALUES[b]
            assert total in (10, 100, 500), (a, b)

    def test_decade_sum_midpoints_stay(self):
        assert apply("decade-sum", "הנ") == "הנ"

    def test_decade_sum_final_to_final(self):
        # כ pairs with פ, both have final forms
        assert apply("decade-sum", "ך") == "ף"
        assert apply("decade-sum", "ף") == "ך"
        assert apply("decade-sum", "ן") == "ן"

    def test_final_without_final_target_is_kept(self):
        # מ -> י under mirror-22, and י has no final form
        assert apply("mirror-22", "שלום") == "בכפם"

    def test_medial_source_gets_canonical_target(self):
        assert apply("decade-sum", "כ") == "פ"

    def test_non_letters_pass_through(self):
        assert apply("mirror-22", "a, 1 !ְ") == "a, 1 !ְ"
        assert apply("mirror-22", "") == ""

    @pytest.mark.parametrize("name", ["mirror-22", "split-half", "decade-sum"])
    def test_involution(self, name):
        for text in (ALL_FORMS, MIXED, "ךלךל מם ןץף"):
            assert apply(name, apply(name, text)) == text

    def test_aliases(self):
        assert apply("atbash", MIXED) == apply("mirror-22", MIXED)
        assert apply("ALBAM", MIXED) == apply("split-half", MIXED)
        assert get_scheme("atbah").name == "decade-sum"

    def test_unknown_scheme(self):
        with pytest.raises(InvalidScheme, match="unknown cipher scheme"):
            apply("rot13", "אב")

    def test_invalid_scheme_is_value_error(self):
        with pytest.raises(ValueError):
            get_scheme("")

    def test_registry_order(self):
        names = [s.name for s in list_schemes()]
        assert names[:3] == ["mirror-22", "split-half", "decade-sum"]

    def test_scheme_pairs_listed_once(self):
        pairs = list(scheme_pairs("mirror-22"))
        assert len(pairs) == 11
        assert pairs[0] == ("א", "ת")
        assert pairs[-1] == ("כ", "ל")


class TestSchemeValidation:
    """Schemes are rejected when they are not their own inverse."""

    def test_builtin_tables_cover_all_forms(self):
        for s in list_schemes()[:3]:
            table = validate(s)
            assert set(table) == set(ALL_FORMS)

    def test_override_breaking_involution_is_rejected(self):
        bad = CipherScheme(
            name="bad-override",
            label="",
            pairs=(("א", "ב"),),
            final_overrides=(("ך", "א"),),
        )
        with pytest.raises(SchemeValidationError, match="not an involution"):
            validate(bad)

    def test_letter_paired_twice_is_rejected(self):
        bad = CipherScheme(name="twice", label="", pairs=(("א", "ב"), ("א", "ג")))
        with pytest.raises(SchemeValidationError, match="paired twice"):
            build_table(bad)

    def test_non_hebrew_pair_is_rejected(self):
        bad = CipherScheme(name="latin", label="", pairs=(("a", "b"),))
        with pytest.raises(SchemeValidationError):
            build_table(bad)

    def test_involutive_override_is_accepted(self):
        ok = CipherScheme(
            name="finals-swap",
            label="",
            pairs=(("א", "ב"),),
            final_overrides=(("ך", "ם"), ("ם", "ך")),
        )
        table = validate(ok)
        assert table["ך"] == "ם"
        assert table["ם"] == "ך"
