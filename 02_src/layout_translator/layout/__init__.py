"""Layout-preserving text transforms: spans, placeholders, chunks, restoration."""

from .span_resolver import merge_spans, resolve_figure_spans
from .placeholders import (
    PLACEHOLDER_PATTERN,
    TOLERANT_PATTERN,
    find_leaked_spans,
    find_lookalike_tokens,
    image_markup,
    make_placeholder,
    placeholder_ordinal,
    substitute_placeholders,
)
from .chunker import CHUNK_SEPARATOR, ChunkingError, split_into_chunks, validate_chunks
from .restorer import restore_placeholders

__all__ = [
    "merge_spans",
    "resolve_figure_spans",
    "PLACEHOLDER_PATTERN",
    "TOLERANT_PATTERN",
    "find_leaked_spans",
    "find_lookalike_tokens",
    "image_markup",
    "make_placeholder",
    "placeholder_ordinal",
    "substitute_placeholders",
    "CHUNK_SEPARATOR",
    "ChunkingError",
    "split_into_chunks",
    "validate_chunks",
    "restore_placeholders",
]
