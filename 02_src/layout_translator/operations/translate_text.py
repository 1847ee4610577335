"""Translate text operation - plain text in, translated text out."""

import logging
from datetime import datetime, timezone
from typing import Optional

from .base import BaseOperation
from ..core.cancellation import CancellationToken, check_cancelled
from ..layout.chunker import split_into_chunks
from ..preprocessing.validation import DocumentValidationError
from ..schemas.common import DocumentTranslationResult, TranslationDiagnostics
from ..schemas.config import TranslationOptions

logger = logging.getLogger(__name__)


class TranslateTextOperation(BaseOperation):
    """Translate plain text with the same chunking and prompts as documents.

    No layout analysis, images or storage are involved.
    """

    def execute(
        self,
        text: str,
        target_language: str,
        options: Optional[TranslationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DocumentTranslationResult:
        """Translate text.

        Args:
            text: Source text
            target_language: Target language code
            options: Prompt and language options
            cancel_token: Optional cancellation token

        Raises:
            DocumentValidationError: If text is blank
            TranslationFailedError: If a chunk fails
        """
        if not text or not text.strip():
            raise DocumentValidationError("Text to translate is empty")

        options = options or TranslationOptions()
        started_at = datetime.now(timezone.utc)
        check_cancelled(cancel_token, "chunking")

        chunks = split_into_chunks(text, self.config.max_chunk_size)
        logger.info(f"Translating text ({len(text)} chars, {len(chunks)} chunks) -> {target_language}")

        translation = self.processor.chunk_translator.translate(
            chunks,
            target_language,
            options,
            cancel_token=cancel_token,
        )

        return DocumentTranslationResult(
            original_filename="",
            original_text=text,
            translated_text=translation.text,
            source_language=options.source_language or "auto",
            target_language=target_language,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            input_tokens=translation.input_tokens,
            output_tokens=translation.output_tokens,
            diagnostics=TranslationDiagnostics(chunk_count=translation.chunk_count),
        )
