"""
Unit tests for the category normalizer.

Run: pytest tests/unit/test_category_normalizer.py -v
"""

import pytest

from services.category_normalizer import (
    normalize_category,
    category_label,
    is_known_category,
    CATEGORY_KEYWORDS,
    UNCATEGORIZED,
)


class TestKeywordMatching:
    """Tests for keyword group matching."""

    @pytest.mark.parametrize("text,expected", [
        ("냉장고", "refrigerator"),
        ("양문형 냉장고", "refrigerator"),
        ("김치냉장고", "refrigerator"),
        ("드럼 세탁기", "washer"),
        ("Washing Machine", "washer"),
        ("스탠드 에어컨", "air_conditioner"),
        ("Air Conditioner", "air_conditioner"),
        ("65인치 TV", "tv"),
        ("Smart Tv", "tv"),
        ("광파오븐 전자레인지", "microwave"),
        ("로봇청소기", "robot_vacuum"),
        ("Robot Vacuum", "robot_vacuum"),
        ("직수 정수기", "water_purifier"),
        ("Water Purifier", "water_purifier"),
    ])
    def test_known_categories(self, text, expected):
        """Free text maps to its canonical id."""
        assert normalize_category(text) == expected

    def test_case_insensitive(self):
        """Matching ignores case."""
        assert normalize_category("REFRIGERATOR") == "refrigerator"

    def test_first_group_wins(self):
        """Text matching several groups takes the earliest group."""
        assert normalize_category("냉장고 겸 정수기") == "refrigerator"


class TestFallback:
    """Tests for text that matches no group."""

    @pytest.mark.parametrize("text", ["", None, "안마의자", "???", "   "])
    def test_unmatched_returns_default(self, text):
        """Unmatched text returns the default id, never raises."""
        assert normalize_category(text) == UNCATEGORIZED

    def test_explicit_default(self):
        """Callers can choose the fallback id."""
        assert normalize_category("안마의자", default="robot_vacuum") == "robot_vacuum"

    def test_default_is_not_a_known_category(self):
        """The sentinel is never mistaken for a real category."""
        assert is_known_category(UNCATEGORIZED) is False


class TestLabels:
    """Tests for display labels."""

    def test_every_category_has_label(self):
        """Each keyword group has a Korean label."""
        for category_id, _ in CATEGORY_KEYWORDS:
            assert category_label(category_id)

    def test_label_values(self):
        assert category_label("refrigerator") == "냉장고"
        assert category_label(UNCATEGORIZED) == "미분류"

    def test_unknown_and_none(self):
        assert category_label("sofa") is None
        assert category_label(None) is None
