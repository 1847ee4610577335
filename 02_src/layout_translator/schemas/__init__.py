"""Data schemas for Layout Translator."""

from .document import (
    AnalysisResult,
    AnalyzedFigure,
    BoundingRegion,
    ExtractedImage,
    FigureSpan,
    LayoutElement,
    OcrLine,
    OcrResult,
    TextSpan,
)
from .common import (
    ChunkTranslationResult,
    DocumentTranslationResult,
    RestorationResult,
    RestorationStats,
    SpanResolution,
    SubstitutionResult,
    TranslationDiagnostics,
)
from .config import (
    SUPPORTED_LANGUAGES,
    AnalysisConfig,
    PipelineConfig,
    TranslationOptions,
    TranslatorConfig,
    get_language_name,
)

__all__ = [
    "AnalysisResult",
    "AnalyzedFigure",
    "BoundingRegion",
    "ExtractedImage",
    "FigureSpan",
    "LayoutElement",
    "OcrLine",
    "OcrResult",
    "TextSpan",
    "ChunkTranslationResult",
    "DocumentTranslationResult",
    "RestorationResult",
    "RestorationStats",
    "SpanResolution",
    "SubstitutionResult",
    "TranslationDiagnostics",
    "SUPPORTED_LANGUAGES",
    "AnalysisConfig",
    "PipelineConfig",
    "TranslationOptions",
    "TranslatorConfig",
    "get_language_name",
]
