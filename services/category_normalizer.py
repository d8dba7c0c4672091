"""
Category normalizer.

Maps free-text category names found in vendor spreadsheets to the canonical
category ids used by the catalog.

Examples:
- "양문형 냉장고" -> "refrigerator"
- "Drum Washer" -> "washer"
- "스탠드 에어컨" -> "air_conditioner"
- "무선 핸디" -> default category id
"""

from typing import Optional

from config import settings

UNCATEGORIZED = "uncategorized"

# Evaluated top to bottom; first group with a matching keyword wins.
# Keywords are lowercase.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("refrigerator", ("냉장고", "냉동고", "김치냉장", "refrigerator", "fridge", "freezer")),
    ("washer", ("세탁기", "건조기", "워시", "washer", "washing", "dryer", "laundry")),
    ("air_conditioner", ("에어컨", "냉난방", "air conditioner", "air-conditioner", "aircon")),
    ("tv", ("티비", "텔레비전", "tv", "television", "oled", "qled")),
    ("microwave", ("전자레인지", "오븐", "microwave", "oven")),
    ("robot_vacuum", ("로봇청소기", "로봇 청소기", "청소기", "robot", "vacuum")),
    ("water_purifier", ("정수기", "purifier", "water")),
]

CATEGORY_LABELS: dict[str, str] = {
    "refrigerator": "냉장고",
    "washer": "세탁기",
    "air_conditioner": "에어컨",
    "tv": "TV",
    "microwave": "전자레인지",
    "robot_vacuum": "로봇청소기",
    "water_purifier": "정수기",
    UNCATEGORIZED: "미분류",
}


def normalize_category(text: Optional[str], default: Optional[str] = None) -> str:
    """
    Map free text to a canonical category id.

    Case-insensitive substring match against CATEGORY_KEYWORDS.
    Never raises: text that matches nothing (including "" and None)
    returns the default category id.

    Args:
        text: Category name, guess, or cell value
        default: Id for unmatched text (defaults to settings.default_category_id)

    Returns:
        Canonical category id
    """
    fallback = default or settings.default_category_id
    if not text:
        return fallback

    lowered = str(text).lower()
    for category_id, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category_id
    return fallback


def category_label(category_id: Optional[str]) -> Optional[str]:
    """Korean display label for a category id, or None if unknown."""
    if category_id is None:
        return None
    return CATEGORY_LABELS.get(category_id)


def is_known_category(category_id: Optional[str]) -> bool:
    """True for ids of a keyword group, False for the uncategorized sentinel."""
    return any(category_id == cid for cid, _ in CATEGORY_KEYWORDS)
