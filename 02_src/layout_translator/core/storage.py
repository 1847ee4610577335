"""Artifact storage with memory and disk backends.

Keys look like "<type>/<name>":
- images/<document>/<file>      binary image data
- translations/<file>.md        UTF-8 Markdown
- reports/<name>                YAML diagnostics
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import yaml

from .cancellation import CancellationToken
from .retry import PollingTimeout, poll_until

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Protocol for artifact storage backends."""

    def save(self, key: str, value: Any) -> None:
        """Save value by key.

        Args:
            key: Storage key (e.g., "images/report/p001_000.png")
            value: Value to save (bytes, str or dict depending on key type)
        """
        ...

    def load(self, key: str, default: Any = None) -> Any:
        """Load value by key, or default if the key doesn't exist."""
        ...

    def exists(self, key: str) -> bool:
        """Check if key exists."""
        ...

    def url_for(self, key: str) -> str:
        """Return an externally dereferenceable URL for the key."""
        ...


class MemoryStorage:
    """In-memory storage backend for experiments and testing."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        logger.info("Initialized MemoryStorage backend")

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value
        logger.debug(f"MemoryStorage: saved key '{key}'")

    def load(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, default)
        logger.debug(f"MemoryStorage: loaded key '{key}' (found: {key in self._data})")
        return value

    def exists(self, key: str) -> bool:
        return key in self._data

    def url_for(self, key: str) -> str:
        return f"memory://{key}"


class DiskStorage:
    """File-based storage backend."""

    def __init__(self, root_dir: Path) -> None:
        """Initialize disk storage with directory structure.

        Args:
            root_dir: Root directory for artifacts
        """
        self.root_dir = Path(root_dir)
        self.images_dir = self.root_dir / "images"
        self.translations_dir = self.root_dir / "translations"
        self.reports_dir = self.root_dir / "reports"

        for directory in [self.images_dir, self.translations_dir, self.reports_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized DiskStorage backend at {self.root_dir}")

    def _get_file_path(self, key: str) -> tuple[Path, str]:
        """Parse key and determine file path and format.

        Returns:
            Tuple of (file_path, format) where format is "binary", "text" or "yaml"
        """
        parts = key.split("/", 1)

        if len(parts) != 2 or not parts[1]:
            raise ValueError(f"Invalid key format: '{key}'. Expected 'type/name'")

        key_type, name = parts
        if ".." in Path(name).parts:
            raise ValueError(f"Invalid key: '{key}'")

        if key_type == "images":
            return self.images_dir / name, "binary"

        elif key_type == "translations":
            return self.translations_dir / name, "text"

        elif key_type == "reports":
            return self.reports_dir / f"{name}.yaml", "yaml"

        else:
            raise ValueError(f"Unknown key type: '{key_type}'")

    def save(self, key: str, value: Any) -> None:
        file_path, format_type = self._get_file_path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            if format_type == "binary":
                if not isinstance(value, bytes):
                    raise TypeError(f"Binary save requires bytes, got {type(value)}")
                file_path.write_bytes(value)

            elif format_type == "text":
                file_path.write_text(value, encoding="utf-8")

            elif format_type == "yaml":
                with file_path.open("w", encoding="utf-8") as f:
                    yaml.safe_dump(value, f, allow_unicode=True, default_flow_style=False, sort_keys=False)

            logger.info(f"DiskStorage: saved key '{key}' to {file_path}")

        except Exception as e:
            logger.error(f"DiskStorage: failed to save key '{key}': {e}")
            raise

    def load(self, key: str, default: Any = None) -> Any:
        file_path, format_type = self._get_file_path(key)

        if not file_path.exists():
            logger.debug(f"DiskStorage: key '{key}' not found, returning default")
            return default

        if format_type == "binary":
            return file_path.read_bytes()

        elif format_type == "text":
            return file_path.read_text(encoding="utf-8")

        with file_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)

    def exists(self, key: str) -> bool:
        file_path, _ = self._get_file_path(key)
        return file_path.exists()

    def url_for(self, key: str) -> str:
        file_path, _ = self._get_file_path(key)
        return file_path.resolve().as_uri()


class ArtifactStore:
    """Persists images, translated documents and reports for one deployment."""

    def __init__(
        self,
        storage: StorageBackend,
        exists_poll_attempts: int = 5,
        exists_poll_interval_s: float = 0.5,
    ) -> None:
        """Initialize artifact store.

        Args:
            storage: Storage backend (MemoryStorage or DiskStorage)
            exists_poll_attempts: Existence checks after an upload
            exists_poll_interval_s: Delay between existence checks
        """
        self.storage = storage
        self.exists_poll_attempts = exists_poll_attempts
        self.exists_poll_interval_s = exists_poll_interval_s
        logger.info(f"Initialized ArtifactStore with {type(storage).__name__}")

    def save_image(self, document_id: str, name: str, data: bytes) -> str:
        """Store image bytes and return the image URL.

        Args:
            document_id: Folder for this document's images
            name: File name, e.g. "p001_000.png"
            data: Image bytes
        """
        key = f"images/{document_id}/{name}"
        self.storage.save(key, data)
        self.wait_until_exists(key)
        return self.storage.url_for(key)

    def save_translation(self, name: str, markdown: str) -> str:
        """Store a translated Markdown document and return its URL."""
        key = f"translations/{name}"
        self.storage.save(key, markdown)
        logger.info(f"Saved translation '{name}' ({len(markdown)} chars)")
        return self.storage.url_for(key)

    def load_translation(self, name: str) -> str:
        """Load a previously stored translated document.

        Raises:
            FileNotFoundError: If no translation with that name exists
        """
        key = f"translations/{name}"
        if not self.storage.exists(key):
            raise FileNotFoundError(f"Translation not found: {name}")
        return self.storage.load(key)

    def save_report(self, name: str, report: Dict[str, Any]) -> None:
        """Store a diagnostics report (YAML on disk)."""
        self.storage.save(f"reports/{name}", report)

    def wait_until_exists(
        self,
        key: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        """Block until the backend reports the key as present.

        Raises:
            PollingTimeout: If the key never appears
        """
        try:
            poll_until(
                lambda: self.storage.exists(key),
                is_done=bool,
                max_attempts=self.exists_poll_attempts,
                interval_s=self.exists_poll_interval_s,
                description=f"existence check for '{key}'",
                cancel_token=cancel_token,
            )
        except PollingTimeout:
            logger.error(f"Stored object '{key}' did not become visible")
            raise
