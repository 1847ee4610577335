"""Placeholder substitution - replace figure spans with inert tokens.

Each resolved figure span is cut out of the document text and replaced by
a numbered token ``[[IMG_PLACEHOLDER_NNN]]`` on its own paragraph. The
token is paired positionally with an extracted image; the resulting
mapping is used after translation to put the images back.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.observer import PipelineObserver
from ..schemas.common import SubstitutionResult
from ..schemas.document import ExtractedImage, FigureSpan
from ..utils.normalization import collapse_blank_lines, normalize_whitespace

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "IMG_PLACEHOLDER_"
PLACEHOLDER_PATTERN = re.compile(r"\[\[IMG_PLACEHOLDER_(\d+)\]\]")

# One or more opening brackets, the token family (IMG_PLACEHOLDER / IMAGE /
# PLACEHOLDER, any case), an optional separator, the ordinal with optional
# leading zeros, one or more closing brackets.
TOLERANT_PATTERN = re.compile(
    r"\[+\s*(?:(?:IMG|IMAGE)[ _-]?)?(?:PLACEHOLDER|IMAGE)\s*[_\-: ]?\s*(\d+)\s*\]+",
    re.IGNORECASE,
)

DEFAULT_LEAK_THRESHOLD = 20


def make_placeholder(ordinal: int) -> str:
    """Build the token for a 1-based ordinal.

    Examples:
        >>> make_placeholder(7)
        '[[IMG_PLACEHOLDER_007]]'
    """
    return f"[[{PLACEHOLDER_PREFIX}{ordinal:03d}]]"


def placeholder_ordinal(placeholder: str) -> int:
    """Extract the numeric ordinal from a placeholder token.

    Raises:
        ValueError: If the string is not a placeholder token
    """
    match = PLACEHOLDER_PATTERN.fullmatch(placeholder.strip())
    if not match:
        raise ValueError(f"Not a placeholder token: '{placeholder}'")
    return int(match.group(1))


def _alt_text(text: str) -> str:
    return normalize_whitespace(text).replace("[", "(").replace("]", ")")


def image_markup(image: ExtractedImage, ordinal: int) -> str:
    """Markdown image reference for an extracted image ("" if it has no URL)."""
    if not image.url:
        return ""
    alt = _alt_text(image.description) or f"Figure {ordinal}"
    return f"![{alt}]({image.url})"


def find_leaked_spans(
    text: str,
    spans: Sequence[FigureSpan],
    threshold: int = DEFAULT_LEAK_THRESHOLD,
) -> List[FigureSpan]:
    """Return spans whose leading figure text still appears in `text`.

    The first `threshold` characters of each span's whitespace-normalized
    content are searched for in the whitespace-normalized text. Spans with
    shorter content are skipped; they are indistinguishable from boilerplate.
    """
    haystack = normalize_whitespace(text)
    leaked = []
    for span in spans:
        head = normalize_whitespace(span.content)[:threshold]
        if len(head) < threshold:
            continue
        if head in haystack:
            leaked.append(span)
    return leaked


def find_lookalike_tokens(text: str, own_tokens: Iterable[str] = ()) -> List[str]:
    """Return document text that the restorer would mistake for a placeholder.

    Examples:
        >>> find_lookalike_tokens("See [Image 3].\\n\\n[[IMG_PLACEHOLDER_001]]", ["[[IMG_PLACEHOLDER_001]]"])
        ['[Image 3]']
    """
    own = set(own_tokens)
    return [m.group(0) for m in TOLERANT_PATTERN.finditer(text) if m.group(0) not in own]


def substitute_placeholders(
    text: str,
    spans: Sequence[FigureSpan],
    images: Sequence[ExtractedImage],
    observer: Optional[PipelineObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
    leak_threshold: int = DEFAULT_LEAK_THRESHOLD,
) -> SubstitutionResult:
    """Replace figure spans with placeholders and pair them with images.

    Args:
        text: Document text the spans index into
        spans: Merged, non-overlapping figure spans
        images: Extracted images in (page, index_in_page) order
        observer: Optional tracing hook
        cancel_token: Optional cancellation token
        leak_threshold: Characters of figure text checked for leakage

    Returns:
        SubstitutionResult with placeholder text and token -> markup mapping
    """
    observer = observer or PipelineObserver()
    check_cancelled(cancel_token, "placeholder substitution")

    ordered = sorted(spans, key=lambda s: s.offset)
    mapping: Dict[str, str] = {}
    unpaired: List[str] = []

    def pair(ordinal: int) -> str:
        placeholder = make_placeholder(ordinal)
        markup = image_markup(images[ordinal - 1], ordinal) if ordinal <= len(images) else ""
        if not markup:
            unpaired.append(placeholder)
            observer.on_warning(
                "substitution",
                f"No image for {placeholder}",
                images=len(images),
            )
        mapping[placeholder] = markup
        return placeholder

    # Ordinals follow ascending offset; replacement runs back to front so
    # earlier offsets stay valid.
    tokens = [pair(i) for i in range(1, len(ordered) + 1)]
    result = text
    for span, placeholder in reversed(list(zip(ordered, tokens))):
        result = f"{result[:span.offset]}\n\n{placeholder}\n\n{result[span.end:]}"

    # Images left over after every span got one (typical for DOCX without
    # usable figure metadata) go to the end of the document.
    for ordinal in range(len(ordered) + 1, len(images) + 1):
        result += f"\n\n{pair(ordinal)}\n\n"

    result = collapse_blank_lines(result)

    lookalikes = find_lookalike_tokens(result, mapping)
    if lookalikes:
        logger.info(f"Document text has {len(lookalikes)} placeholder look-alike(s), kept as text")

    leaked = find_leaked_spans(result, ordered, leak_threshold)
    for span in leaked:
        observer.on_warning(
            "substitution",
            "Figure text still present after substitution",
            figure_index=span.figure_index,
            offset=span.offset,
        )

    observer.on_stage(
        "substitution",
        placeholders=len(mapping),
        from_spans=len(ordered),
        appended=max(0, len(images) - len(ordered)),
        unpaired=len(unpaired),
        leaked=len(leaked),
        lookalikes=len(lookalikes),
    )
    return SubstitutionResult(
        text=result,
        mapping=mapping,
        unpaired=unpaired,
        leaked_spans=leaked,
        lookalikes=lookalikes,
    )
