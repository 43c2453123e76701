"""Tests for metadata cleaning helpers."""
from datetime import datetime, timezone

import pytest

from cv_search.utils.cleaning import (
    ensure_string_list,
    format_education,
    normalize_location,
    normalize_skill_list,
    normalize_text,
    parse_timestamp,
)


class TestStringLists:
    def test_separated_string(self):
        assert ensure_string_list("React, Node.js | Python,,") == ["React", "Node.js", "Python"]

    def test_list_drops_blanks_and_nested_values(self):
        assert ensure_string_list(["React", " ", None, {"name": "x"}, ["y"], 3]) == ["React", "3"]

    @pytest.mark.parametrize("value", [None, "", [], " , ", 42, {"a": 1}])
    def test_nothing_usable(self, value):
        assert ensure_string_list(value) is None


class TestNormalizeSkillList:
    def test_canonical_and_deduplicated(self):
        skills = ["React Native", "ReactJS", "NodeJS", "Haskell", "node js"]
        assert normalize_skill_list(skills) == ["react", "node.js", "haskell"]

    def test_string_input(self):
        assert normalize_skill_list("Python, Django") == ["python", "django"]

    @pytest.mark.parametrize("value", [None, [], ["", "  "], "  "])
    def test_returns_none_not_empty_list(self, value):
        assert normalize_skill_list(value) is None


class TestNormalizeLocation:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("  Sialkot ", "sialkot"),
            ("NYC", "new york"),
            ("New   York City", "new york"),
            ("Sialkot, Pakistan", "sialkot, pakistan"),
            ("Bengaluru", "bangalore"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalized_form(self, raw, expected):
        assert normalize_location(raw) == expected

    @pytest.mark.parametrize("raw", ["NYC", "Pindi", "Lahore ", "KHI", "Bombay"])
    def test_idempotent(self, raw):
        once = normalize_location(raw)
        assert normalize_location(once) == once


class TestFormatEducation:
    def test_string_trimmed(self):
        assert format_education("  BS   Computer Science ") == "BS Computer Science"

    def test_dict_fields_joined(self):
        education = {"degree": "BS", "major": "Computer Science", "university": "FAST", "graduationYear": 2019}
        assert format_education(education) == "BS, Computer Science, FAST, 2019"

    def test_snake_case_graduation_year(self):
        assert format_education({"degree": "MS", "graduation_year": 2021}) == "MS, 2021"

    def test_list_entries_joined(self):
        education = [{"degree": "BS", "university": "FAST"}, "Intermediate", None, {"degree": ""}]
        assert format_education(education) == "BS, FAST | Intermediate"

    @pytest.mark.parametrize("value", [None, "", {}, [], 5])
    def test_nothing_usable(self, value):
        assert format_education(value) is None

    def test_idempotent(self):
        once = format_education([{"degree": "BS", "university": "FAST"}, "Intermediate"])
        assert format_education(once) == once


class TestParseTimestamp:
    def test_iso_with_z(self):
        assert parse_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_naive_iso_assumed_utc(self):
        assert parse_timestamp("2024-03-01T10:00:00").tzinfo is not None

    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", True])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None


def test_normalize_text():
    assert normalize_text("  a \n b ") == "a b"
    assert normalize_text("   ") is None
