"""Chunk translator - send chunks to the translation backend and reassemble."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..schemas.common import ChunkTranslationResult
from ..schemas.config import TranslationOptions, get_language_name
from .cancellation import CancellationToken, OperationCancelled, check_cancelled
from .observer import PipelineObserver
from .translation_client import BaseTranslationClient

logger = logging.getLogger(__name__)

REASSEMBLY_SEPARATOR = "\n\n"


class TranslationFailedError(RuntimeError):
    """Raised when any chunk fails; the whole document translation aborts."""

    def __init__(self, chunk_index: int, chunk_count: int, cause: BaseException) -> None:
        super().__init__(f"Chunk {chunk_index + 1}/{chunk_count} failed: {cause}")
        self.chunk_index = chunk_index
        self.chunk_count = chunk_count


class ChunkTranslator:
    """Translates ordered chunks, sequentially or with a thread pool.

    Results are always reassembled in original chunk order, regardless of
    completion order.
    """

    def __init__(
        self,
        client: BaseTranslationClient,
        max_workers: int = 1,
        observer: Optional[PipelineObserver] = None,
    ):
        """Initialize chunk translator.

        Args:
            client: Translation backend
            max_workers: Max parallel chunk requests (1 = sequential)
            observer: Optional tracing hook
        """
        self.client = client
        self.max_workers = max_workers
        self.observer = observer or PipelineObserver()

    def translate(
        self,
        chunks: Sequence[str],
        target_language: str,
        options: Optional[TranslationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ChunkTranslationResult:
        """Translate all chunks and join them with a blank line.

        Args:
            chunks: Ordered chunks
            target_language: Target language code
            options: Prompt options (defaults preserve Markdown and placeholders)
            cancel_token: Optional cancellation token

        Returns:
            ChunkTranslationResult with joined text and token totals

        Raises:
            TranslationFailedError: If any chunk fails
            OperationCancelled: If the token is cancelled
        """
        options = options or TranslationOptions()
        system_prompt = options.effective_system_prompt()
        user_prompt = options.effective_user_prompt(get_language_name(target_language))
        total = len(chunks)

        # Set on the first failure so queued chunks stop early
        abort = CancellationToken()

        def run_one(index: int, chunk: str) -> Tuple[int, Dict[str, Any]]:
            check_cancelled(cancel_token, f"chunk {index + 1}/{total}")
            abort.raise_if_cancelled(f"chunk {index + 1}/{total}")
            logger.info(f"Translating chunk {index + 1}/{total} ({len(chunk)} chars)")
            try:
                return index, self.client.translate(
                    chunk,
                    target_language,
                    system_prompt,
                    user_prompt,
                    cancel_token=cancel_token,
                )
            except OperationCancelled:
                raise
            except Exception as exc:
                abort.cancel()
                raise TranslationFailedError(index, total, exc) from exc

        if self.max_workers <= 1 or total <= 1:
            results = [run_one(i, chunk)[1] for i, chunk in enumerate(chunks)]
        else:
            results = self._run_parallel(run_one, chunks)

        translated = REASSEMBLY_SEPARATOR.join(r["translated_text"].strip() for r in results)
        result = ChunkTranslationResult(
            text=translated,
            input_tokens=sum(int(r.get("input_tokens", 0)) for r in results),
            output_tokens=sum(int(r.get("output_tokens", 0)) for r in results),
            chunk_count=total,
        )

        self.observer.on_stage(
            "translation",
            chunks=total,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
        )
        return result

    def _run_parallel(self, run_one, chunks: Sequence[str]) -> List[Dict[str, Any]]:
        logger.info(f"Translating {len(chunks)} chunks with {self.max_workers} workers")

        results: List[Optional[Dict[str, Any]]] = [None] * len(chunks)
        failures: List[TranslationFailedError] = []
        cancellations: List[OperationCancelled] = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(run_one, i, chunk) for i, chunk in enumerate(chunks)]
            for future in as_completed(futures):
                try:
                    index, response = future.result()
                    results[index] = response
                except TranslationFailedError as exc:
                    failures.append(exc)
                except OperationCancelled as exc:
                    cancellations.append(exc)

        if failures:
            raise min(failures, key=lambda e: e.chunk_index)
        if cancellations:
            raise cancellations[0]
        return results
