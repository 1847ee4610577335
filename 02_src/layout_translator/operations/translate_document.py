"""Translate document operation - PDF/DOCX in, translated Markdown out.

Stages, in order:
1. validate the upload
2. analyse layout (text + figures)
3. collect images and store them
4. resolve figure spans
5. replace figure spans with placeholders
6. chunk
7. translate chunks
8. restore images
9. store the Markdown and a diagnostics report
"""

import logging
import re
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .base import BaseOperation
from ..core.cancellation import CancellationToken, OperationCancelled, check_cancelled
from ..layout.chunker import split_into_chunks
from ..layout.placeholders import PLACEHOLDER_PATTERN, substitute_placeholders
from ..layout.restorer import restore_placeholders
from ..layout.span_resolver import resolve_figure_spans
from ..preprocessing.validation import validate_document
from ..schemas.common import DocumentTranslationResult, TranslationDiagnostics
from ..schemas.config import TranslationOptions
from ..schemas.document import AnalysisResult, ExtractedImage

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]+")


class DocumentTranslationError(RuntimeError):
    """Raised when a document translation fails after validation."""


def artifact_stem(filename: str) -> str:
    """File stem safe for storage keys ("My report.pdf" -> "My_report")."""
    stem = _UNSAFE_NAME_CHARS.sub("_", Path(filename).stem).strip("_")
    return stem or "document"


class TranslateDocumentOperation(BaseOperation):
    """Translate a PDF or DOCX document into Markdown with images kept in place."""

    def execute(
        self,
        data: bytes,
        filename: str,
        target_language: str,
        options: Optional[TranslationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DocumentTranslationResult:
        """Translate a document.

        Args:
            data: Document bytes
            filename: Original file name (extension selects the format)
            target_language: Target language code, e.g. "ja"
            options: Prompt and language options
            cancel_token: Optional cancellation token

        Returns:
            DocumentTranslationResult with the stored Markdown and diagnostics

        Raises:
            DocumentValidationError: If the file is empty, too large or unsupported
            OperationCancelled: If the token is cancelled
            DocumentTranslationError: If any later stage fails
        """
        options = options or TranslationOptions()
        config = self.config

        extension = validate_document(filename, data, config.max_file_size_bytes)
        started_at = datetime.now(timezone.utc)
        logger.info(f"Starting TranslateDocumentOperation: {filename} -> {target_language}")

        try:
            result = self._run(data, filename, extension, target_language, options, started_at, cancel_token)
        except (OperationCancelled, DocumentTranslationError):
            raise
        except Exception as exc:
            logger.error(f"Translation of '{filename}' failed: {exc}")
            raise DocumentTranslationError(f"Translation of '{filename}' failed: {exc}") from exc

        logger.info(
            f"TranslateDocumentOperation completed: {result.artifact_name} "
            f"({result.character_count} chars, {result.image_count} images, "
            f"{result.tokens_used} tokens, {result.duration.total_seconds():.1f}s)"
        )
        return result

    def _run(
        self,
        data: bytes,
        filename: str,
        extension: str,
        target_language: str,
        options: TranslationOptions,
        started_at: datetime,
        cancel_token: Optional[CancellationToken],
    ) -> DocumentTranslationResult:
        processor = self.processor
        config = self.config
        observer = self.observer

        timestamp = started_at.strftime("%Y%m%d%H%M%S")
        stem = artifact_stem(filename)
        document_id = f"{stem}_{timestamp}"

        # 2. Layout analysis
        check_cancelled(cancel_token, "analysis")
        analysis = processor.analysis_client.analyze(data, cancel_token=cancel_token)
        if not analysis.content.strip():
            raise DocumentTranslationError(f"No text could be extracted from '{filename}'")
        observer.on_stage(
            "analysis",
            characters=len(analysis.content),
            figures=len(analysis.figures),
            pages=analysis.page_count,
        )

        # 3. Images
        images = self._collect_images(data, extension, analysis, document_id, cancel_token)

        # 4. Figure spans
        resolution = resolve_figure_spans(
            analysis,
            margin_ratio=config.vertical_margin_ratio,
            observer=observer,
            cancel_token=cancel_token,
        )

        # 5. Placeholders
        substitution = substitute_placeholders(
            analysis.content,
            resolution.spans,
            images,
            observer=observer,
            cancel_token=cancel_token,
            leak_threshold=config.leak_threshold,
        )

        # 6. Chunks
        check_cancelled(cancel_token, "chunking")
        chunks = split_into_chunks(substitution.text, config.max_chunk_size)
        observer.on_stage("chunking", chunks=len(chunks), characters=len(substitution.text))

        # 7. Translation
        translation = processor.chunk_translator.translate(
            chunks,
            target_language,
            options,
            cancel_token=cancel_token,
        )

        # 8. Restoration
        restoration = restore_placeholders(
            translation.text,
            substitution.mapping,
            observer=observer,
            cancel_token=cancel_token,
            lookalikes=substitution.lookalikes,
        )
        if PLACEHOLDER_PATTERN.search(restoration.text):
            raise DocumentTranslationError("Placeholder tokens survived restoration")

        # 9. Persist
        check_cancelled(cancel_token, "storage")
        artifact_name = f"{stem}_{target_language}_{timestamp}.md"
        artifact_url = processor.store.save_translation(artifact_name, restoration.text)

        diagnostics = TranslationDiagnostics(
            dropped_spans=len(resolution.dropped),
            unpaired_placeholders=len(substitution.unpaired),
            leaked_spans=len(substitution.leaked_spans),
            failed_images=sum(1 for image in images if not image.url),
            chunk_count=translation.chunk_count,
            restoration=restoration.stats,
        )

        result = DocumentTranslationResult(
            original_filename=filename,
            original_text=analysis.content,
            translated_text=restoration.text,
            source_language=options.source_language or "auto",
            target_language=target_language,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            artifact_name=artifact_name,
            artifact_url=artifact_url,
            image_urls=[image.url for image in images if image.url],
            input_tokens=translation.input_tokens,
            output_tokens=translation.output_tokens,
            diagnostics=diagnostics,
        )

        processor.store.save_report(Path(artifact_name).stem, self._build_report(result))
        return result

    def _collect_images(
        self,
        data: bytes,
        extension: str,
        analysis: AnalysisResult,
        document_id: str,
        cancel_token: Optional[CancellationToken],
    ) -> List[ExtractedImage]:
        collector = self.processor.image_collector

        if self.config.image_source == "figures":
            client = self.processor.analysis_client
            return collector.collect_from_figures(
                analysis.figures,
                lambda figure_id: client.get_figure_image(
                    analysis.result_id, figure_id, cancel_token=cancel_token
                ),
                document_id,
                cancel_token=cancel_token,
            )

        return collector.collect(data, extension, document_id, cancel_token=cancel_token)

    @staticmethod
    def _build_report(result: DocumentTranslationResult) -> dict:
        return {
            "original_filename": result.original_filename,
            "artifact_name": result.artifact_name,
            "artifact_url": result.artifact_url,
            "source_language": result.source_language,
            "target_language": result.target_language,
            "started_at": result.started_at.isoformat(),
            "completed_at": result.completed_at.isoformat(),
            "duration_s": round(result.duration.total_seconds(), 3),
            "characters": result.character_count,
            "images": result.image_urls,
            "input_tokens": result.input_tokens,
            "output_tokens": result.output_tokens,
            "diagnostics": asdict(result.diagnostics) if result.diagnostics else {},
        }
