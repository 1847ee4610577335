"""High-level translation operations."""

from .base import BaseOperation
from .translate_document import DocumentTranslationError, TranslateDocumentOperation
from .translate_text import TranslateTextOperation
from .extract_image_text import ExtractImageTextOperation

__all__ = [
    "BaseOperation",
    "DocumentTranslationError",
    "ExtractImageTextOperation",
    "TranslateDocumentOperation",
    "TranslateTextOperation",
]
