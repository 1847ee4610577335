"""Placeholder restorer - put images back into the translated text.

Translators, LLMs especially, do not always keep ``[[IMG_PLACEHOLDER_001]]``
verbatim: brackets get collapsed, spaces appear, zeros are dropped or the
token is renamed to IMAGE/PLACEHOLDER. Placeholders are therefore looked up
with a tolerant pattern, and an image whose token cannot be found is
appended at the end of the document so it is never lost.

The tolerant pattern also matches ordinary prose such as ``[Image 3]``.
Such text is only ever consumed to restore an image; it is never deleted.
Look-alikes recorded at substitution time are left untouched altogether.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence, Set

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.observer import PipelineObserver
from ..schemas.common import RestorationResult, RestorationStats
from ..utils.normalization import collapse_blank_lines
from .placeholders import TOLERANT_PATTERN, placeholder_ordinal

logger = logging.getLogger(__name__)


def _is_placeholder_family(token: str) -> bool:
    return "placeholder" in token.lower()


def _lookalike_key(token: str) -> str:
    return re.sub(r"\s+", "", token).lower()


def restore_placeholders(
    text: str,
    mapping: Dict[str, str],
    observer: Optional[PipelineObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
    lookalikes: Sequence[str] = (),
) -> RestorationResult:
    """Replace placeholders in translated text with image markup.

    Matching is done in one pass over the translated text, so inserted
    markup is never rescanned. The first occurrence of each known ordinal
    receives its markup. Later copies, ordinals without an image and
    ordinals unknown to the mapping are removed when the token carries
    the PLACEHOLDER name; anything else is left as it was.

    Args:
        text: Translated text (chunks already reassembled)
        mapping: Placeholder token -> image markup ("" = no image)
        observer: Optional tracing hook
        cancel_token: Optional cancellation token
        lookalikes: Tokens that were already part of the document text;
            each listed occurrence is kept verbatim (matched ignoring case
            and whitespace)

    Returns:
        RestorationResult with final text and diagnostic counters
    """
    observer = observer or PipelineObserver()
    check_cancelled(cancel_token, "placeholder restoration")

    stats = RestorationStats()
    by_ordinal = {placeholder_ordinal(p): p for p in mapping}
    restored: Set[int] = set()
    kept = Counter(_lookalike_key(token) for token in lookalikes)

    def replace(match: "re.Match[str]") -> str:
        token = match.group(0)
        key = _lookalike_key(token)
        if kept[key] > 0:
            kept[key] -= 1
            stats.preserved += 1
            return token

        removable = _is_placeholder_family(token)
        ordinal = int(match.group(1))
        placeholder = by_ordinal.get(ordinal)

        if placeholder is None:
            if not removable:
                return token
            stats.stray_removed += 1
            observer.on_warning("restoration", f"Removing unknown token '{token}'")
            return ""

        markup = mapping[placeholder]
        if not markup or ordinal in restored:
            if not removable:
                return token
            if markup:
                stats.duplicates_removed += 1
            else:
                stats.empty_removed += 1
            return ""

        restored.add(ordinal)
        stats.tolerant_matches += 1
        if token == placeholder:
            stats.exact_matches += 1
        else:
            stats.reformatted += 1
            observer.on_warning(
                "restoration",
                f"Placeholder {placeholder} came back as '{token}'",
            )
        return markup

    result = TOLERANT_PATTERN.sub(replace, text)

    appended: List[str] = []
    for ordinal in sorted(by_ordinal):
        placeholder = by_ordinal[ordinal]
        markup = mapping[placeholder]
        if not markup or ordinal in restored:
            continue
        stats.appended += 1
        appended.append(markup)
        observer.on_warning(
            "restoration",
            f"Placeholder {placeholder} lost, appending image at end",
        )

    if appended:
        result = result.rstrip() + "\n\n" + "\n\n".join(appended) + "\n"

    result = collapse_blank_lines(result)

    observer.on_stage(
        "restoration",
        tolerant=stats.tolerant_matches,
        reformatted=stats.reformatted,
        exact=stats.exact_matches,
        appended=stats.appended,
        empty_removed=stats.empty_removed,
        duplicates_removed=stats.duplicates_removed,
        stray_removed=stats.stray_removed,
        preserved=stats.preserved,
    )
    return RestorationResult(text=result, stats=stats)
