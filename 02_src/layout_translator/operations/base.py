"""Operation base: one user-facing action run against a DocumentTranslator."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.observer import PipelineObserver
    from ..core.processor import DocumentTranslator
    from ..schemas.config import PipelineConfig


class BaseOperation(ABC):
    """Single action (translate a document, translate text, read an image).

    Clients, storage, limits and the observer all come from the translator
    given at construction; operations keep no state between calls.
    """

    def __init__(self, processor: "DocumentTranslator"):
        self.processor = processor

    @property
    def config(self) -> "PipelineConfig":
        return self.processor.config

    @property
    def observer(self) -> "PipelineObserver":
        return self.processor.observer

    @abstractmethod
    def execute(self, *args: Any, **kwargs: Any) -> Any:
        """Run the operation and return its result."""
