"""
Centralized value parsing utilities for block parameters.

Keeps parsing consistent across processors: list splitting, flags and
numbers all behave the same wherever they appear.
"""

import re
from typing import List, Optional

from chatblocks.constants import NEGATIVE_FLAG_VALUES


class ParameterValueParser:
    """Parsing helpers shared by parameter processors."""

    @staticmethod
    def is_empty(value: Optional[str]) -> bool:
        """Check if value is missing, empty or whitespace-only."""
        return not value or not value.strip()

    @staticmethod
    def normalize_string(value: str, to_lower: bool = True) -> str:
        """Normalize string value consistently."""
        normalized = value.strip()
        return normalized.lower() if to_lower else normalized

    @staticmethod
    def parse_list(value: str, to_lower: bool = False) -> List[str]:
        """
        Parse whitespace-separated values (commas are accepted too).

        Examples:
            "notes/a.md notes/b.md" -> ["notes/a.md", "notes/b.md"]
            "web_search_duckduckgo, file_ops_safe" -> ["web_search_duckduckgo", "file_ops_safe"]
        """
        if ParameterValueParser.is_empty(value):
            return []

        items = [item.strip() for item in re.split(r'[,\s]+', value.strip()) if item.strip()]

        if to_lower:
            items = [item.lower() for item in items]

        return items

    @staticmethod
    def parse_flag(value: str) -> bool:
        """
        Parse a boolean flag.

        Any value is True except the literal negative tokens "no" and "nil".
        Absence is handled by the caller (the default applies).
        """
        return value.strip() not in NEGATIVE_FLAG_VALUES

    @staticmethod
    def parse_float(value: str) -> Optional[float]:
        """Parse a float, returning None when the value is not numeric."""
        try:
            return float(value.strip())
        except (TypeError, ValueError):
            return None

    @staticmethod
    def parse_int(value: str) -> Optional[int]:
        """Parse an integer; integral floats such as "100.0" are accepted."""
        number = ParameterValueParser.parse_float(value)
        if number is None or number != number or number in (float("inf"), float("-inf")):
            return None
        if not number.is_integer():
            return None
        return int(number)
