"""Result schemas shared by the pipeline stages."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .document import FigureSpan, TextSpan


@dataclass
class SpanResolution:
    """Output of the span resolver.

    Attributes:
        spans: Merged, non-overlapping figure spans sorted by offset
        dropped: Raw spans discarded because their offsets were invalid
    """
    spans: List[FigureSpan]
    dropped: List[TextSpan] = field(default_factory=list)


@dataclass
class SubstitutionResult:
    """Output of placeholder substitution.

    Attributes:
        text: Placeholder-bearing text to translate
        mapping: Placeholder token -> image markup ("" if no image paired)
        unpaired: Placeholders that got no image
        leaked_spans: Figure spans whose text still shows up in `text`
        lookalikes: Document text matching the tolerant placeholder pattern
    """
    text: str
    mapping: Dict[str, str]
    unpaired: List[str] = field(default_factory=list)
    leaked_spans: List[FigureSpan] = field(default_factory=list)
    lookalikes: List[str] = field(default_factory=list)

    @property
    def placeholder_count(self) -> int:
        return len(self.mapping)


@dataclass
class RestorationStats:
    """Counters describing how placeholders came back from translation.

    Attributes:
        tolerant_matches: Placeholders restored in place
        exact_matches: Subset of tolerant matches that came back verbatim
        reformatted: Subset of tolerant matches that did not come back verbatim
        appended: Images appended at document end (placeholder lost)
        empty_removed: Placeholders without an image, removed from text
        duplicates_removed: Extra copies of an already restored placeholder
        stray_removed: PLACEHOLDER tokens with unknown ordinals
        preserved: Look-alike tokens from the document left as text
    """
    tolerant_matches: int = 0
    reformatted: int = 0
    exact_matches: int = 0
    appended: int = 0
    empty_removed: int = 0
    duplicates_removed: int = 0
    stray_removed: int = 0
    preserved: int = 0

    @property
    def degraded(self) -> bool:
        """True when the translator did not keep placeholders verbatim."""
        return bool(self.reformatted or self.appended or self.duplicates_removed or self.stray_removed)


@dataclass
class RestorationResult:
    """Output of the placeholder restorer."""
    text: str
    stats: RestorationStats


@dataclass
class ChunkTranslationResult:
    """Reassembled translation of all chunks.

    Attributes:
        text: Translated chunks joined in original order
        input_tokens: Sum of prompt tokens
        output_tokens: Sum of completion tokens
        chunk_count: Number of chunks translated
    """
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    chunk_count: int = 0


@dataclass
class TranslationDiagnostics:
    """Signals about best-effort recoveries made during one request."""
    dropped_spans: int = 0
    unpaired_placeholders: int = 0
    leaked_spans: int = 0
    failed_images: int = 0
    chunk_count: int = 0
    restoration: RestorationStats = field(default_factory=RestorationStats)


@dataclass
class DocumentTranslationResult:
    """Result of a document (or plain-text) translation.

    Attributes:
        original_filename: Uploaded file name ("" for plain text)
        original_text: Text submitted for translation
        translated_text: Final Markdown with images restored
        source_language: Source language code ("auto" if detected)
        target_language: Target language code
        artifact_name: Stored Markdown name ("" for plain text)
        artifact_url: URL of the stored Markdown ("" for plain text)
        image_urls: URLs of the stored images
        input_tokens: Prompt tokens used
        output_tokens: Completion tokens used
        started_at: Start time (UTC)
        completed_at: Completion time (UTC)
        diagnostics: Recovery counters
    """
    original_filename: str
    original_text: str
    translated_text: str
    source_language: str
    target_language: str
    started_at: datetime
    completed_at: datetime
    artifact_name: str = ""
    artifact_url: str = ""
    image_urls: List[str] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    diagnostics: Optional[TranslationDiagnostics] = None

    @property
    def image_count(self) -> int:
        return len(self.image_urls)

    @property
    def tokens_used(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def character_count(self) -> int:
        return len(self.translated_text)

    @property
    def duration(self) -> timedelta:
        return self.completed_at - self.started_at
