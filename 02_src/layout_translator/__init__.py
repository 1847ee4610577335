"""
Layout Translator - translate PDF/DOCX documents to Markdown with images kept in place.

This package provides:
- TranslateDocumentOperation: analyse, translate and restore images for a document
- TranslateTextOperation: translate plain text with the same chunking and prompts
- ExtractImageTextOperation: read the text of an image (OCR)
"""

__version__ = "0.1.0"

# Core classes
from .core.processor import DocumentTranslator
from .core.analysis_client import AnalysisClientError, BaseAnalysisClient, DocumentIntelligenceClient
from .core.translation_client import (
    BaseTranslationClient,
    ChatCompletionTranslationClient,
    TranslationClientError,
)
from .core.chunk_translator import ChunkTranslator, TranslationFailedError
from .core.cancellation import CancellationToken, OperationCancelled
from .core.observer import LoggingObserver, PipelineObserver, RecordingObserver
from .core.storage import ArtifactStore, DiskStorage, MemoryStorage

# Operations
from .operations.base import BaseOperation
from .operations.translate_document import DocumentTranslationError, TranslateDocumentOperation
from .operations.translate_text import TranslateTextOperation
from .operations.extract_image_text import ExtractImageTextOperation

# Preprocessing
from .preprocessing.validation import DocumentValidationError

# Schemas
from .schemas.config import (
    AnalysisConfig,
    PipelineConfig,
    TranslationOptions,
    TranslatorConfig,
    SUPPORTED_LANGUAGES,
)
from .schemas.common import DocumentTranslationResult, TranslationDiagnostics
from .schemas.document import OcrLine, OcrResult

__all__ = [
    # Version
    "__version__",

    # Core classes
    "DocumentTranslator",
    "BaseAnalysisClient",
    "DocumentIntelligenceClient",
    "BaseTranslationClient",
    "ChatCompletionTranslationClient",
    "ChunkTranslator",
    "CancellationToken",
    "LoggingObserver",
    "PipelineObserver",
    "RecordingObserver",
    "ArtifactStore",
    "DiskStorage",
    "MemoryStorage",

    # Operations
    "BaseOperation",
    "TranslateDocumentOperation",
    "TranslateTextOperation",
    "ExtractImageTextOperation",

    # Errors
    "AnalysisClientError",
    "TranslationClientError",
    "TranslationFailedError",
    "OperationCancelled",
    "DocumentTranslationError",
    "DocumentValidationError",

    # Schemas
    "AnalysisConfig",
    "PipelineConfig",
    "TranslationOptions",
    "TranslatorConfig",
    "SUPPORTED_LANGUAGES",
    "DocumentTranslationResult",
    "OcrLine",
    "OcrResult",
    "TranslationDiagnostics",
]
