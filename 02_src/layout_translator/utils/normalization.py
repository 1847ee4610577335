"""Text normalization helpers shared by substitution, chunking and restoration."""

import re

_BLANK_RUN = re.compile(r"\n{3,}")
_WHITESPACE = re.compile(r"\s+")


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines into a single blank line.

    Examples:
        >>> collapse_blank_lines("a\\n\\n\\n\\nb")
        'a\\n\\nb'
        >>> collapse_blank_lines("a\\n\\nb")
        'a\\n\\nb'
    """
    return _BLANK_RUN.sub("\n\n", text)


def normalize_whitespace(text: str) -> str:
    """Replace every whitespace run (including newlines) with one space and strip.

    Examples:
        >>> normalize_whitespace("  Figure\\n 1:\\tSales ")
        'Figure 1: Sales'
    """
    if text is None:
        return ""
    return _WHITESPACE.sub(" ", text).strip()
