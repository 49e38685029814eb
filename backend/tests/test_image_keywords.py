"""Tests for the keyword → stock photo resolver."""

from __future__ import annotations

import pytest

from grocer.utils.image_keywords import (
    KEYWORD_TABLE,
    fallback_image_url,
    image_url_for_group,
    match_keyword,
    resolve_image_url,
)


class TestMatchKeyword:
    """Tier order: title, hint, category (guarded), exact title words, generic."""

    def test_longest_keyword_wins(self) -> None:
        """'corn flakes' beats 'corn' in the same text."""
        assert match_keyword("Kellogg's Corn Flakes 1kg") == "corn flakes"
        assert KEYWORD_TABLE["corn flakes"] == "cereal"
        assert KEYWORD_TABLE["corn"] == "pantry"

    def test_equal_length_tie_goes_to_later_keyword(self) -> None:
        """'clover' and 'butter' are both six letters; the product noun wins."""
        assert match_keyword("Clover Butter 500g") == "butter"
        assert resolve_image_url("Clover Butter 500g") == image_url_for_group("butter")

    def test_case_insensitive(self) -> None:
        assert match_keyword("FRESH MILK 2L") == "milk"

    def test_title_beats_hint(self) -> None:
        assert match_keyword("Albany Brown Bread", hint="milk carton") == "albany"

    def test_hint_used_when_title_has_no_keyword(self) -> None:
        assert match_keyword("Weekly Special 30% Off", hint="chicken breast") == "chicken breast"

    def test_category_used_when_title_and_hint_silent(self) -> None:
        assert match_keyword("Weekend Deal", hint="special offer", category="Household") == (
            "household"
        )

    def test_generic_category_never_overrides_specific_title(self) -> None:
        """A 'Dairy' or 'Household' category must not replace the product named in the title."""
        assert match_keyword("Basmati rice 2kg", category="Dairy") == "rice"
        assert match_keyword("Fresh milk", hint="special", category="Household") == "milk"

    def test_single_word_title(self) -> None:
        assert match_keyword("Sausage", hint="", category="") == "sausage"

    def test_no_match_returns_none(self) -> None:
        assert match_keyword("Mystery Item", hint="thing", category="Misc") is None

    def test_all_blank(self) -> None:
        assert match_keyword(None) is None
        assert match_keyword("", "", "") is None

    def test_deterministic(self) -> None:
        results = {match_keyword("Clover Full Cream Milk", "milk carton", "Dairy") for _ in range(5)}
        assert len(results) == 1


class TestResolveImageUrl:
    def test_milk_hint_resolves_to_milk_photo(self) -> None:
        """'Fresh Milk 2L' maps to the milk group, not the generic photo."""
        url = resolve_image_url("Fresh Milk 2L")
        assert url == image_url_for_group("milk")
        assert url != fallback_image_url()

    def test_generic_fallback(self) -> None:
        assert resolve_image_url("Gift card") == fallback_image_url()

    def test_size_is_applied(self) -> None:
        url = resolve_image_url("Tastic Rice 2kg", width=400, height=300)
        assert "w=400" in url
        assert "h=300" in url

    @pytest.mark.parametrize(
        ("title", "group"),
        [
            ("Nescafe Classic 200g", "coffee"),
            ("Coca-Cola 2L", "soda"),
            ("Appletiser 1.25L", "juice"),
            ("Sunlight Dishwashing Liquid 750ml", "household"),
            ("Danone Greek Yogurt 1kg", "yogurt"),
            ("Free Range Eggs 18pk", "eggs"),
            ("Koo Baked Beans 410g", "pantry"),
        ],
    )
    def test_branded_titles(self, title: str, group: str) -> None:
        assert resolve_image_url(title) == image_url_for_group(group)

    def test_unknown_group_uses_generic_photo(self) -> None:
        assert image_url_for_group("nonexistent") == fallback_image_url()
