"""Tests for query, display and filename normalization."""

import pytest

from logomatch.normalize import (
    derive_query,
    index_text,
    normalize_query,
    reduce_website,
    snake_case,
    start_case,
)


class TestQueries:
    def test_normalize_query_trims_and_uppercases(self):
        assert normalize_query("  lincoln hs ") == "LINCOLN HS"

    def test_differently_cased_queries_are_equal(self):
        assert normalize_query("Lincoln") == normalize_query(" LINCOLN\t")

    def test_derive_query_strips_extension(self):
        assert derive_query("LINCOLNHS.png", (".png",)) == "LINCOLNHS"

    def test_derive_query_extension_case_insensitive(self):
        assert derive_query("lincolnhs.PNG", (".png",)) == "LINCOLNHS"

    def test_derive_query_keeps_unknown_extension(self):
        assert derive_query("LINCOLNHS.jpg", (".png",)) == "LINCOLNHS.JPG"

    def test_derive_query_keeps_dotted_names(self):
        assert derive_query("ST. MARYS") == "ST. MARYS"
        assert derive_query("ST. MARYS.png") == "ST. MARYS"

    def test_derive_query_drops_directory(self):
        assert derive_query("images/logos/roosevelt.png", (".png",)) == "ROOSEVELT"


class TestCasing:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("LINCOLN HIGH", "lincoln_high"),
            ("ST. MARY'S ACADEMY", "st_marys_academy"),
            ("PS 123 Brooklyn", "ps_123_brooklyn"),
            ("École Saint-Jean", "ecole_saint_jean"),
            ("McKinley  Tech", "mc_kinley_tech"),
        ],
    )
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected

    def test_snake_case_keeps_non_latin_words(self):
        assert snake_case("東京学園") == "東京学園"
        assert snake_case("Гимназия 1") == "гимназия_1"

    def test_snake_case_without_words(self):
        assert snake_case("!!!") == ""

    def test_start_case(self):
        assert start_case("LINCOLN HIGH") == "Lincoln High"
        assert start_case("SAN JOSE") == "San Jose"


class TestIndexText:
    def test_reduce_website(self):
        assert reduce_website("https://www.lincolnhigh.org/about") == "lincolnhigh.org"
        assert reduce_website("web.mit.edu") == "web.mit.edu"

    def test_reduce_website_blank(self):
        assert reduce_website(None) is None
        assert reduce_website("  ") is None

    def test_index_text_blank_is_none(self):
        assert index_text(None) is None
        assert index_text("!!!") is None

    def test_index_text_processes(self):
        assert index_text("Lincoln-High") == "lincoln high"
