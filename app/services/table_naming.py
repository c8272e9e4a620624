"""
Table naming conventions and colour palette
"""

from typing import List, Optional

NAMING_TYPES = ("numbers", "letters", "roman", "custom-prefix")
DEFAULT_NAMING_TYPE = "numbers"
DEFAULT_PREFIX = "Table"
DEFAULT_CAPACITY = 8

ROMAN_NUMERALS = [
    "I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X",
    "XI", "XII", "XIII", "XIV", "XV", "XVI", "XVII", "XVIII", "XIX", "XX",
]

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

TABLE_COLORS = [
    "#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#EC4899",
    "#14B8A6", "#F97316", "#6366F1", "#84CC16", "#06B6D4", "#D946EF",
    "#22C55E", "#EAB308", "#0EA5E9", "#F43F5E", "#A855F7", "#64748B",
]


def generate_table_name(index: int, naming_type: Optional[str], prefix: Optional[str] = None) -> str:
    """Name for the table at zero-based ``index``.

    Letters and roman numerals fall back to plain numbers once their fixed
    alphabet runs out; unknown types behave like ``numbers``.
    """
    number = str(index + 1)
    if naming_type == "letters":
        return LETTERS[index] if index < len(LETTERS) else number
    if naming_type == "roman":
        return ROMAN_NUMERALS[index] if index < len(ROMAN_NUMERALS) else number
    if naming_type == "custom-prefix":
        return f"{(prefix or '').strip() or DEFAULT_PREFIX} {number}"
    return number


def generate_table_names(count: int, naming_type: Optional[str], prefix: Optional[str] = None) -> List[str]:
    return [generate_table_name(i, naming_type, prefix) for i in range(count)]


def table_color(index: int) -> str:
    return TABLE_COLORS[index % len(TABLE_COLORS)]
