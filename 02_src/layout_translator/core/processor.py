"""DocumentTranslator - wires clients, storage and stages together."""

import logging
from typing import Dict, Optional

from dotenv import load_dotenv

from ..preprocessing.image_collector import ImageCollector
from ..schemas.config import (
    SUPPORTED_LANGUAGES,
    AnalysisConfig,
    PipelineConfig,
    TranslatorConfig,
)
from .analysis_client import BaseAnalysisClient, DocumentIntelligenceClient
from .chunk_translator import ChunkTranslator
from .observer import LoggingObserver, PipelineObserver
from .storage import ArtifactStore, DiskStorage, MemoryStorage
from .translation_client import BaseTranslationClient, ChatCompletionTranslationClient

logger = logging.getLogger(__name__)


class DocumentTranslator:
    """Holds everything a translation operation needs.

    Supports:
    - Layout analysis through a BaseAnalysisClient
    - Chunked translation through a BaseTranslationClient
    - Artifact storage (memory or disk)
    - Injected observers for tracing
    """

    def __init__(
        self,
        analysis_client: Optional[BaseAnalysisClient] = None,
        translation_client: Optional[BaseTranslationClient] = None,
        store: Optional[ArtifactStore] = None,
        config: Optional[PipelineConfig] = None,
        observer: Optional[PipelineObserver] = None,
    ):
        """Initialize document translator.

        Args:
            analysis_client: Layout analysis client (created from environment if not provided)
            translation_client: Translation client (created from environment if not provided)
            store: Artifact store (created from config.state_dir if not provided)
            config: Pipeline configuration
            observer: Tracing hook (default: LoggingObserver)

        Raises:
            ValueError: If a client has to be created and its settings are missing
        """
        self.config = config or PipelineConfig()
        self.observer = observer or LoggingObserver()

        # 1. Storage first (images are uploaded during collection)
        if store is None:
            if self.config.state_dir is not None:
                storage = DiskStorage(self.config.state_dir)
            else:
                storage = MemoryStorage()
            store = ArtifactStore(storage)
            logger.info(
                f"Created ArtifactStore with {type(storage).__name__} "
                f"(state_dir={self.config.state_dir})"
            )
        self.store = store

        # 2. Clients from environment when not injected
        if analysis_client is None or translation_client is None:
            load_dotenv()

        if analysis_client is None:
            analysis_client = DocumentIntelligenceClient(AnalysisConfig())
            logger.info("Created DocumentIntelligenceClient from environment")
        self.analysis_client = analysis_client

        if translation_client is None:
            translation_client = ChatCompletionTranslationClient(TranslatorConfig())
            logger.info("Created ChatCompletionTranslationClient from environment")
        self.translation_client = translation_client

        # 3. Stage helpers
        self.image_collector = ImageCollector(self.store, self.observer)
        self.chunk_translator = ChunkTranslator(
            self.translation_client,
            max_workers=self.config.chunk_workers,
            observer=self.observer,
        )

        logger.info(
            f"DocumentTranslator initialized (max_chunk_size={self.config.max_chunk_size}, "
            f"chunk_workers={self.config.chunk_workers}, image_source={self.config.image_source})"
        )

    def get_translation_result(self, artifact_name: str) -> str:
        """Load a previously stored translated document.

        Args:
            artifact_name: Name returned in DocumentTranslationResult.artifact_name

        Raises:
            FileNotFoundError: If no such translation was stored
        """
        return self.store.load_translation(artifact_name)

    @staticmethod
    def supported_languages() -> Dict[str, str]:
        """Return language code -> display name for every supported language."""
        return dict(SUPPORTED_LANGUAGES)
