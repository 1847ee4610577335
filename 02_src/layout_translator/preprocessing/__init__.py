"""Preprocessing: upload validation and image extraction."""

from .image_collector import ImageCollector, RawImage, extract_docx_images, extract_pdf_images, to_png
from .validation import (
    MAX_FILE_SIZE_BYTES,
    SUPPORTED_EXTENSIONS,
    DocumentValidationError,
    validate_document,
)

__all__ = [
    "ImageCollector",
    "RawImage",
    "extract_docx_images",
    "extract_pdf_images",
    "to_png",
    "MAX_FILE_SIZE_BYTES",
    "SUPPORTED_EXTENSIONS",
    "DocumentValidationError",
    "validate_document",
]
