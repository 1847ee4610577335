"""Extract image text operation - JPEG/PNG/TIFF/BMP in, recognised text out."""

import logging
from typing import Optional

from .base import BaseOperation
from ..core.cancellation import CancellationToken, check_cancelled
from ..preprocessing.validation import MAX_IMAGE_SIZE_BYTES, validate_image
from ..schemas.document import OcrResult

logger = logging.getLogger(__name__)


class ExtractImageTextOperation(BaseOperation):
    """Read the text of an image with the analysis service's read model."""

    def execute(
        self,
        data: bytes,
        filename: str,
        cancel_token: Optional[CancellationToken] = None,
        max_file_size_bytes: int = MAX_IMAGE_SIZE_BYTES,
    ) -> OcrResult:
        """Extract text from an image.

        Args:
            data: Image bytes
            filename: Original file name (extension selects validation)
            cancel_token: Optional cancellation token
            max_file_size_bytes: Upload limit

        Returns:
            OcrResult with the full text and individual lines

        Raises:
            DocumentValidationError: If the image is empty, too large or unsupported
            AnalysisClientError: If the service call fails
            OperationCancelled: If the token is cancelled
        """
        validate_image(filename, data, max_file_size_bytes)
        logger.info(f"Starting ExtractImageTextOperation: {filename} ({len(data)} bytes)")

        check_cancelled(cancel_token, "ocr")
        result = self.processor.analysis_client.read_text(data, cancel_token=cancel_token)
        result.filename = filename

        self.observer.on_stage(
            "ocr",
            lines=result.line_count,
            pages=result.page_count,
            confidence=result.confidence,
        )
        if not result.text.strip():
            self.observer.on_warning("ocr", f"No text found in '{filename}'")

        logger.info(f"ExtractImageTextOperation completed: {result.line_count} lines from {filename}")
        return result
