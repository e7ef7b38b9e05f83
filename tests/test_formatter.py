"""Tests for Formatter -- replacement rules and casing per context."""

from __future__ import annotations

import pytest

from tagsmith.core.formatter import Casing, Formatter, title_case
from tagsmith.models.node_kind import NodeKind


class TestTitleCase:
    def test_basic(self):
        assert title_case("the white stripes") == "The White Stripes"

    def test_lowercases_rest_of_word(self):
        assert title_case("hELLO wORLD") == "Hello World"

    def test_keeps_acronyms(self):
        assert title_case("live at the BBC") == "Live At The BBC"

    def test_apostrophes_stay_inside_word(self):
        assert title_case("don't stop") == "Don't Stop"

    def test_underscore_separates_words(self):
        assert title_case("the_white_stripes") == "The_White_Stripes"


class TestFormat:
    def test_track_title_casing(self):
        formatter = Formatter(track_casing=Casing.TITLE)
        assert formatter.format(NodeKind.TRACK, "the white stripes") == "The White Stripes"

    def test_track_lower_casing(self):
        formatter = Formatter(track_casing=Casing.LOWER)
        assert formatter.format(NodeKind.TRACK, "the white stripes") == "the white stripes"

    def test_context_selects_casing(self):
        formatter = Formatter(
            release_casing=Casing.UPPER,
            track_casing=Casing.LOWER,
            flat_casing=Casing.TITLE,
            metadata_casing=Casing.LOWER,
        )
        assert formatter.format(NodeKind.RELEASE, "Ab Cd") == "AB CD"
        assert formatter.format(NodeKind.TRACK, "Ab Cd") == "ab cd"
        assert formatter.format(NodeKind.FLAT, "ab cd") == "Ab Cd"
        assert formatter.format(None, "Ab Cd") == "ab cd"

    def test_default_replacements_remove_hostile_characters(self):
        formatter = Formatter(metadata_casing=Casing.LOWER)
        assert formatter.format(None, "what? <live>") == "what live"
        assert formatter.format(None, "a/b\\c:d") == "a b c d"

    def test_replacements_ignore_case(self):
        formatter = Formatter({"feat.": "ft."}, track_casing=Casing.LOWER)
        assert formatter.format(NodeKind.TRACK, "Song FEAT. Guest") == "song ft. guest"

    def test_replacements_run_in_order(self):
        formatter = Formatter({"a": "b", "b": "c"}, metadata_casing=Casing.LOWER)
        assert formatter.format(None, "a") == "c"

    def test_replacement_is_literal(self):
        formatter = Formatter({".": "_"}, metadata_casing=Casing.LOWER)
        assert formatter.format(None, "a.b") == "a_b"

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_passes_through(self, text):
        assert Formatter().format(NodeKind.TRACK, text) == text


class TestReplacementRules:
    def test_add_appends_rule(self):
        formatter = Formatter({}, track_casing=Casing.LOWER)
        formatter.add(" ", "_")
        assert formatter.format(NodeKind.TRACK, "Seven Nation Army") == "seven_nation_army"

    def test_add_rejects_duplicate_key(self):
        formatter = Formatter({"x": "y"})
        with pytest.raises(ValueError):
            formatter.add("x", "z")
        assert formatter.replacements == {"x": "y"}

    def test_replacements_property_is_a_copy(self):
        formatter = Formatter({"x": "y"})
        formatter.replacements["q"] = "r"
        assert "q" not in formatter.replacements

    def test_casing_from_config_value(self):
        assert Casing("lower") is Casing.LOWER
        with pytest.raises(ValueError):
            Casing("sentence")
