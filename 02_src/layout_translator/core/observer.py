"""Pipeline observers - tracing hooks injected into DocumentTranslator."""

import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


class PipelineObserver:
    """Base observer. Every hook is a no-op."""

    def on_stage(self, stage: str, **data: Any) -> None:
        """Called when a stage finishes.

        Args:
            stage: Stage name (e.g. "spans", "substitution", "restoration")
            **data: Stage-specific counters
        """

    def on_warning(self, stage: str, message: str, **data: Any) -> None:
        """Called for salvageable anomalies (dropped span, lost image, ...)."""


class LoggingObserver(PipelineObserver):
    """Observer that routes events to the module logger."""

    def on_stage(self, stage: str, **data: Any) -> None:
        details = ", ".join(f"{k}={v}" for k, v in data.items())
        logger.info(f"[{stage}] {details}")

    def on_warning(self, stage: str, message: str, **data: Any) -> None:
        details = ", ".join(f"{k}={v}" for k, v in data.items())
        logger.warning(f"[{stage}] {message}" + (f" ({details})" if details else ""))


class RecordingObserver(LoggingObserver):
    """Logging observer that also keeps every event in memory."""

    def __init__(self) -> None:
        self.stages: List[Tuple[str, Dict[str, Any]]] = []
        self.warnings: List[Tuple[str, str, Dict[str, Any]]] = []

    def on_stage(self, stage: str, **data: Any) -> None:
        super().on_stage(stage, **data)
        self.stages.append((stage, data))

    def on_warning(self, stage: str, message: str, **data: Any) -> None:
        super().on_warning(stage, message, **data)
        self.warnings.append((stage, message, data))

    def warnings_for(self, stage: str) -> List[str]:
        return [message for s, message, _ in self.warnings if s == stage]
