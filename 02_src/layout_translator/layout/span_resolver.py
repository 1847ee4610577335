"""Span resolver - decide which character ranges of the text are figure OCR.

Document analysis attaches some figure text to the figure itself and some
to nearby paragraphs/tables. For every figure we collect:

1. spans attached directly to the figure;
2. spans of paragraphs/tables on the same page whose vertical extent
   overlaps the figure's, widened by a margin of 10% of the figure height.

Spans are merged per figure (min start to max end), then merged across
figures wherever ranges touch or overlap. The result is sorted and
non-overlapping.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.observer import PipelineObserver
from ..schemas.common import SpanResolution
from ..schemas.document import (
    AnalysisResult,
    AnalyzedFigure,
    BoundingRegion,
    FigureSpan,
    LayoutElement,
    TextSpan,
)

logger = logging.getLogger(__name__)

DEFAULT_MARGIN_RATIO = 0.1


def _figure_page(figure: AnalyzedFigure) -> int:
    return figure.bounding_regions[0].page_number if figure.bounding_regions else 0


def _overlaps(extent: Tuple[float, float], other: Tuple[float, float], margin: float) -> bool:
    low, high = extent
    other_low, other_high = other
    return other_low <= high + margin and other_high >= low - margin


def _nearby_element_spans(
    region: BoundingRegion,
    elements: Iterable[LayoutElement],
    margin_ratio: float,
) -> List[TextSpan]:
    """Spans of elements on the region's page that overlap it vertically."""
    extent = region.vertical_extent()
    if extent is None:
        return []

    margin = (extent[1] - extent[0]) * margin_ratio
    found: List[TextSpan] = []
    for element in elements:
        for element_region in element.bounding_regions:
            if element_region.page_number != region.page_number:
                continue
            element_extent = element_region.vertical_extent()
            if element_extent is None:
                continue
            if _overlaps(extent, element_extent, margin):
                found.extend(element.spans)
                break
    return found


def _is_valid(span: TextSpan, text_length: int) -> bool:
    return span.offset >= 0 and span.length > 0 and span.end <= text_length


def merge_spans(spans: Sequence[FigureSpan], text: str = "") -> List[FigureSpan]:
    """Merge touching or overlapping spans.

    Spans are sorted by offset and scanned left to right; a span starting at
    or before the current end is folded into the current one. The merged span
    keeps the figure_index and page_number of its leftmost member.

    Args:
        spans: Spans in any order
        text: Document text used to refresh `content` of merged spans

    Returns:
        Sorted, non-overlapping spans
    """
    merged: List[FigureSpan] = []
    for span in sorted(spans, key=lambda s: (s.offset, s.end)):
        if merged and span.offset <= merged[-1].end:
            current = merged[-1]
            current.length = max(current.end, span.end) - current.offset
        else:
            merged.append(FigureSpan(
                figure_index=span.figure_index,
                page_number=span.page_number,
                offset=span.offset,
                length=span.length,
                content=span.content,
            ))

    if text:
        for span in merged:
            span.content = text[span.offset:span.end]
    return merged


def resolve_figure_spans(
    analysis: AnalysisResult,
    margin_ratio: float = DEFAULT_MARGIN_RATIO,
    observer: Optional[PipelineObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> SpanResolution:
    """Compute the figure spans to excise from analysis.content.

    Args:
        analysis: Analysis result with text, figures, paragraphs and tables
        margin_ratio: Vertical tolerance as a fraction of figure height
        observer: Optional tracing hook
        cancel_token: Optional cancellation token

    Returns:
        SpanResolution with merged spans and the raw spans dropped as invalid
    """
    observer = observer or PipelineObserver()
    check_cancelled(cancel_token, "span resolution")

    text = analysis.content
    elements = list(analysis.paragraphs) + list(analysis.tables)
    dropped: List[TextSpan] = []
    per_figure: Dict[int, List[TextSpan]] = {}

    for figure in analysis.figures:
        collected = list(figure.spans)

        # Without polygons only the directly attached spans are used
        for region in figure.bounding_regions:
            collected.extend(_nearby_element_spans(region, elements, margin_ratio))

        for span in collected:
            if not _is_valid(span, len(text)):
                dropped.append(span)
                observer.on_warning(
                    "spans",
                    "Dropping invalid span",
                    figure_index=figure.figure_index,
                    offset=span.offset,
                    length=span.length,
                    text_length=len(text),
                )
                continue
            per_figure.setdefault(figure.figure_index, []).append(span)

    figures_by_index = {f.figure_index: f for f in analysis.figures}
    figure_spans = []
    for figure_index, spans in per_figure.items():
        start = min(s.offset for s in spans)
        end = max(s.end for s in spans)
        figure_spans.append(FigureSpan(
            figure_index=figure_index,
            page_number=_figure_page(figures_by_index[figure_index]),
            offset=start,
            length=end - start,
        ))

    merged = merge_spans(figure_spans, text)

    observer.on_stage(
        "spans",
        figures=len(analysis.figures),
        figures_with_spans=len(figure_spans),
        merged=len(merged),
        dropped=len(dropped),
    )
    return SpanResolution(spans=merged, dropped=dropped)
