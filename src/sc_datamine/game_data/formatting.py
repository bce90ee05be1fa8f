"""
Text formatting pipeline for raw field values.

String values pass through string-table resolution, the placeholder
filter and control-code rewriting before they are exposed for display.
Machine-facing lookups only resolve the string table and strip the
control codes.
"""

import re
from typing import Any, Optional

from .models import LocalizationTable

TRIGSTR_PREFIX = "TRIGSTR_"

# Joke placeholder the map authors put into meaningless descriptions
PLACEHOLDER_PATTERN = re.compile(r"fuck you", re.IGNORECASE)

# |c + 2 hex alpha + 6 hex color + content, closed by |r, the next |c or end of text
COLOR_TAG_PATTERN = re.compile(
    r"\|c(?P<alpha>[0-9a-fA-F]{2})(?P<color>[0-9a-fA-F]{6})(?P<content>.*?)(?:\|r|(?=\|c)|$)",
    re.DOTALL,
)
LINE_BREAK_PATTERN = re.compile(r"(?:\|r\s?)?\|n")
CONTROL_CODE_PATTERN = re.compile(r"\|n|\|c[a-fA-F0-9]{8}|\|r")
STRING_NUMBER_PATTERN = re.compile(r"[1-9]\d*")

LINE_BREAK = "<br/>"
COLORED_SPAN = '<span class="w3-colored" style="color: #{color}{alpha}">{content}</span>'


class TextFormatter:
    """Applies the formatting pipeline using one localization table."""

    def __init__(self, strings: Optional[LocalizationTable] = None):
        self.strings: LocalizationTable = dict(strings or {})

    def resolve(self, text: str) -> str:
        """Resolve a string-table reference; other text is returned as is.

        Unresolved references yield an empty string.
        """
        if not text.startswith(TRIGSTR_PREFIX):
            return text
        match = STRING_NUMBER_PATTERN.search(text, len(TRIGSTR_PREFIX))
        if not match:
            return ""
        return self.strings.get(match.group(), "")

    def format(self, value: Any) -> Any:
        """Format a value for display; non-string values pass through."""
        if not isinstance(value, str):
            return value
        text = self.resolve(value)
        if PLACEHOLDER_PATTERN.search(text):
            return ""
        text = COLOR_TAG_PATTERN.sub(self._colored_span, text)
        return LINE_BREAK_PATTERN.sub(LINE_BREAK, text)

    def strip(self, value: Any) -> Any:
        """Resolve string references and drop control codes, for machine use."""
        if not isinstance(value, str):
            return value
        return CONTROL_CODE_PATTERN.sub("", self.resolve(value))

    @staticmethod
    def _colored_span(match: "re.Match[str]") -> str:
        return COLORED_SPAN.format(
            color=match.group("color"),
            alpha=match.group("alpha"),
            content=match.group("content"),
        )
