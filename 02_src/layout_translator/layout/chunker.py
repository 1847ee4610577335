"""Split placeholder-bearing Markdown into translation chunks.

Sections start at Markdown headings and stay whole when they fit. Larger
sections are broken into paragraphs (blank-line separated; HTML tables are
never split). Units are packed greedily and joined with CHUNK_SEPARATOR,
so joining the chunks with the same separator and chunking again yields
identical boundaries.
"""

import logging
import re
from typing import List

from .placeholders import PLACEHOLDER_PREFIX

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n"

_HEADING_SPLIT = re.compile(r"(?=^#{1,6}\s)", re.MULTILINE)
_PARAGRAPH_SPLIT = re.compile(r"\n(?:[ \t]*\n)+")
_PARTIAL_HEAD = re.compile(r"\[\[\s*" + PLACEHOLDER_PREFIX + r"\d*\s*\]?$")
_PARTIAL_TAIL = re.compile(r"^\d*\s*\]\]")


class ChunkingError(ValueError):
    """Raised when a chunk boundary cuts through a placeholder token."""


def _paragraphs(section: str) -> List[str]:
    """Blank-line separated paragraphs, with open <table> blocks kept together."""
    paragraphs: List[str] = []
    open_tables = 0
    for part in _PARAGRAPH_SPLIT.split(section):
        part = part.strip("\n")
        if not part.strip():
            continue
        if open_tables > 0:
            paragraphs[-1] = f"{paragraphs[-1]}{CHUNK_SEPARATOR}{part}"
        else:
            paragraphs.append(part)
        lowered = part.lower()
        open_tables = max(0, open_tables + lowered.count("<table") - lowered.count("</table>"))
    return paragraphs


def _sections(text: str) -> List[List[str]]:
    """Heading-delimited sections, each as its list of paragraphs."""
    sections = []
    for raw in _HEADING_SPLIT.split(text):
        paragraphs = _paragraphs(raw)
        if paragraphs:
            sections.append(paragraphs)
    return sections


def validate_chunks(chunks: List[str]) -> None:
    """Ensure no chunk boundary falls inside a placeholder token.

    Raises:
        ChunkingError: If a chunk ends with the opening part of a token or
                       starts with the closing part of one
    """
    for index, chunk in enumerate(chunks):
        if _PARTIAL_HEAD.search(chunk):
            raise ChunkingError(f"Chunk {index} ends inside a placeholder token")
        if index > 0 and _PARTIAL_TAIL.match(chunk):
            raise ChunkingError(f"Chunk {index} starts inside a placeholder token")


def split_into_chunks(text: str, max_chunk_size: int) -> List[str]:
    """Split text into ordered chunks of at most max_chunk_size characters.

    A single paragraph longer than max_chunk_size becomes its own oversized
    chunk; splitting it further would break tables or sentences.

    Args:
        text: Placeholder-bearing Markdown
        max_chunk_size: Maximum characters per chunk

    Returns:
        Ordered chunks; "\\n\\n".join(chunks) reproduces the text modulo
        whitespace normalisation at split points
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    units: List[str] = []
    for paragraphs in _sections(text):
        section = CHUNK_SEPARATOR.join(paragraphs)
        if len(section) <= max_chunk_size:
            units.append(section)
        else:
            units.extend(paragraphs)

    chunks: List[str] = []
    current = ""
    for unit in units:
        if not current:
            current = unit
        elif len(current) + len(CHUNK_SEPARATOR) + len(unit) <= max_chunk_size:
            current = f"{current}{CHUNK_SEPARATOR}{unit}"
        else:
            chunks.append(current)
            current = unit
    if current:
        chunks.append(current)

    for chunk in chunks:
        if len(chunk) > max_chunk_size:
            logger.warning(
                f"Chunk of {len(chunk)} chars exceeds max_chunk_size={max_chunk_size} "
                "(single paragraph or table)"
            )

    validate_chunks(chunks)
    logger.info(f"Split {len(text)} chars into {len(chunks)} chunk(s) (max {max_chunk_size})")
    return chunks
