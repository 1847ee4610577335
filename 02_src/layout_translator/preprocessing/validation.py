"""Upload validation - run before any external call is made."""

import logging
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx")
MAX_FILE_SIZE_BYTES = 40 * 1024 * 1024

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".tiff", ".tif", ".bmp")
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024


class DocumentValidationError(ValueError):
    """Raised for empty, oversized or unsupported documents."""


def _validate_upload(
    filename: str,
    data: bytes,
    max_file_size_bytes: int,
    allowed: Sequence[str],
    allowed_description: str,
) -> str:
    if not data:
        raise DocumentValidationError(f"File '{filename}' is empty")

    if len(data) > max_file_size_bytes:
        limit_mb = max_file_size_bytes // (1024 * 1024)
        raise DocumentValidationError(
            f"File '{filename}' is {len(data)} bytes, larger than the {limit_mb}MB limit"
        )

    extension = Path(filename).suffix.lower()
    if extension not in allowed:
        raise DocumentValidationError(
            f"Unsupported file type '{extension or filename}'. Supported: {allowed_description}."
        )

    logger.debug(f"Validated '{filename}' ({len(data)} bytes)")
    return extension


def validate_document(
    filename: str,
    data: bytes,
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
) -> str:
    """Validate an uploaded document.

    Args:
        filename: Original file name (used for the extension)
        data: File contents
        max_file_size_bytes: Upload limit

    Returns:
        Lower-case extension, e.g. ".pdf"

    Raises:
        DocumentValidationError: If the file is empty, too large or not PDF/DOCX
    """
    return _validate_upload(
        filename,
        data,
        max_file_size_bytes,
        SUPPORTED_EXTENSIONS,
        "PDF (.pdf) and Word (.docx) documents",
    )


def validate_image(
    filename: str,
    data: bytes,
    max_file_size_bytes: int = MAX_IMAGE_SIZE_BYTES,
) -> str:
    """Validate an image submitted for text extraction.

    Raises:
        DocumentValidationError: If the file is empty, too large or not JPEG/PNG/TIFF/BMP
    """
    return _validate_upload(
        filename,
        data,
        max_file_size_bytes,
        IMAGE_EXTENSIONS,
        ", ".join(IMAGE_EXTENSIONS),
    )
