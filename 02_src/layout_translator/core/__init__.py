"""Core components: clients, storage, cancellation and the translator."""

from .cancellation import CancellationToken, OperationCancelled
from .observer import LoggingObserver, PipelineObserver, RecordingObserver
from .storage import ArtifactStore, DiskStorage, MemoryStorage
from .analysis_client import AnalysisClientError, BaseAnalysisClient, DocumentIntelligenceClient
from .translation_client import (
    BaseTranslationClient,
    ChatCompletionTranslationClient,
    TranslationClientError,
)
from .chunk_translator import ChunkTranslator, TranslationFailedError
from .processor import DocumentTranslator

__all__ = [
    "CancellationToken",
    "OperationCancelled",
    "LoggingObserver",
    "PipelineObserver",
    "RecordingObserver",
    "ArtifactStore",
    "DiskStorage",
    "MemoryStorage",
    "AnalysisClientError",
    "BaseAnalysisClient",
    "DocumentIntelligenceClient",
    "BaseTranslationClient",
    "ChatCompletionTranslationClient",
    "TranslationClientError",
    "ChunkTranslator",
    "TranslationFailedError",
    "DocumentTranslator",
]
