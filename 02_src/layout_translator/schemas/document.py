"""Document analysis schemas - text, layout elements, figure spans and images."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class TextSpan:
    """Character range into the analysed document text.

    Attributes:
        offset: Start offset (code points)
        length: Number of characters
    """
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class BoundingRegion:
    """Location of an element on a page.

    Attributes:
        page_number: Page number (1-based)
        polygon: Flat vertex list [x1, y1, x2, y2, ...]
    """
    page_number: int
    polygon: List[float] = field(default_factory=list)

    def vertical_extent(self) -> Optional[Tuple[float, float]]:
        """Return (min_y, max_y), or None when the polygon carries no geometry."""
        ys = self.polygon[1::2]
        if not ys or all(y == 0 for y in self.polygon):
            return None
        return min(ys), max(ys)


@dataclass
class LayoutElement:
    """Paragraph or table reported by document analysis.

    Attributes:
        kind: "paragraph" or "table"
        bounding_regions: Where the element sits on the page(s)
        spans: Text spans the element covers
        role: Paragraph role (title, sectionHeading, ...) if reported
    """
    kind: str
    bounding_regions: List[BoundingRegion] = field(default_factory=list)
    spans: List[TextSpan] = field(default_factory=list)
    role: Optional[str] = None


@dataclass
class AnalyzedFigure:
    """Non-text region (image, chart) detected by document analysis.

    Attributes:
        figure_index: Position of the figure in the analysis result (0-based)
        figure_id: Service identifier, e.g. "1.1" (page.ordinal)
        bounding_regions: Where the figure sits on the page(s)
        spans: Text spans attributed directly to the figure
        caption: Caption text, if any
    """
    figure_index: int
    figure_id: str = ""
    bounding_regions: List[BoundingRegion] = field(default_factory=list)
    spans: List[TextSpan] = field(default_factory=list)
    caption: str = ""


@dataclass
class AnalysisResult:
    """Result of document analysis.

    Attributes:
        content: Single linear (Markdown) text of the document
        figures: Detected figures
        paragraphs: Paragraph elements
        tables: Table elements
        result_id: Analysis operation id (needed to fetch figure images)
        page_count: Number of analysed pages
    """
    content: str
    figures: List[AnalyzedFigure] = field(default_factory=list)
    paragraphs: List[LayoutElement] = field(default_factory=list)
    tables: List[LayoutElement] = field(default_factory=list)
    result_id: str = ""
    page_count: int = 0


@dataclass
class FigureSpan:
    """Run of document text that is OCR output of a figure.

    Offsets are relative to AnalysisResult.content. After resolution the
    spans of a document are non-overlapping and sorted by offset.
    """
    figure_index: int
    page_number: int
    offset: int
    length: int
    content: str = ""

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class ExtractedImage:
    """Image pulled from the source binary and persisted to storage.

    Attributes:
        page_number: Page the image appears on (1-based)
        index_in_page: Order of the image within the page (0-based)
        url: Durable URL of the stored image ("" if the upload failed)
        description: Alt text used in the final Markdown
    """
    page_number: int
    index_in_page: int
    url: str
    description: str = ""


@dataclass
class OcrLine:
    """Line of text read from an image.

    Attributes:
        text: Line content
        page_number: Page the line was read from (1-based)
        confidence: Mean confidence of the words on the line (1.0 if not reported)
    """
    text: str
    page_number: int = 1
    confidence: float = 1.0


@dataclass
class OcrResult:
    """Text read from an image or scanned document.

    Attributes:
        text: Full extracted text, lines joined by newlines
        lines: Individual lines in reading order
        page_count: Number of pages (frames for multi-page TIFF)
        language: Most confident detected locale, if reported
        confidence: Mean word confidence over the whole input (1.0 if not reported)
        filename: Source file name
    """
    text: str
    lines: List[OcrLine] = field(default_factory=list)
    page_count: int = 0
    language: Optional[str] = None
    confidence: float = 1.0
    filename: str = ""

    @property
    def line_count(self) -> int:
        return len(self.lines)
