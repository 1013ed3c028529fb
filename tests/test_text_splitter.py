"""Tests for backend.services.text_splitter."""

import pytest

from backend.services.text_splitter import expand_titles, split_bulk_text


class TestSplitBulkText:
    def test_plain_title_is_returned_trimmed(self):
        assert split_bulk_text("  Water the plants  ") == ["Water the plants"]

    def test_mixed_delimiters_keep_order(self):
        assert split_bulk_text("Buy milk, walk dog; call mom") == ["Buy milk", "walk dog", "call mom"]

    def test_short_fragments_are_dropped(self):
        assert split_bulk_text("ok, a, do laundry") == ["do laundry"]

    def test_three_characters_is_too_short(self):
        assert split_bulk_text("abc, abcd") == ["abcd"]

    def test_every_delimiter_splits(self):
        text = "first\nsecond;third,fourth|fifth•sixth-seventh*eighth"
        assert split_bulk_text(text) == [
            "first",
            "second",
            "third",
            "fourth",
            "fifth",
            "sixth",
            "seventh",
            "eighth",
        ]

    def test_hyphen_inside_a_title_splits_it(self):
        assert split_bulk_text("Follow-up with team") == ["Follow", "up with team"]

    def test_duplicates_are_kept(self):
        assert split_bulk_text("Stretch; Stretch") == ["Stretch", "Stretch"]

    def test_empty_input(self):
        assert split_bulk_text("") == []
        assert split_bulk_text(None) == []
        assert split_bulk_text(" ;, \n ") == []


class TestExpandTitles:
    def test_several_fragments_become_several_titles(self):
        assert expand_titles("Buy milk\nCall the bank") == ["Buy milk", "Call the bank"]

    def test_single_fragment_keeps_the_full_title(self):
        assert expand_titles("  e-mail the landlord  ") == ["e-mail the landlord"]

    def test_short_title_is_still_created(self):
        assert expand_titles("Gym") == ["Gym"]

    def test_blank_title_is_rejected(self):
        with pytest.raises(ValueError):
            expand_titles("   ")
