"""Configuration schemas for analysis/translation clients and the pipeline."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

DEFAULT_SYSTEM_PROMPT = """You are a professional translator.
Follow these rules:

1. Translate naturally while keeping the exact meaning of the source.
2. Preserve the document structure (headings, lists, tables) as Markdown.
3. Translate technical terms appropriately; keep the original term in parentheses when helpful.
4. Take cultural nuance into account.
5. Do not translate image reference syntax such as ![...](...).
6. Reproduce the layout of the original (paragraphing, heading levels) as closely as possible."""

DEFAULT_USER_PROMPT_TEMPLATE = """Translate the following text into {target_language}.

Notes:
- Keep the image placeholders [[IMG_PLACEHOLDER_NNN]] untranslated, exactly where they are
- Keep the heading hierarchy (#, ##, ### ...)
- Keep tables as Markdown (or HTML) tables"""

MARKDOWN_INSTRUCTIONS = """

Additional instructions:
- The input is Markdown. Keep its structure (headings, lists, tables, code blocks) intact
- Keep image references ![...](URL) as they are
- Keep HTML tags such as <figure> or <table> and their structure"""

PLACEHOLDER_INSTRUCTIONS = """

Image placeholders:
- Leave every token of the form [[IMG_PLACEHOLDER_NNN]] completely unmodified and in its place
- Do not translate, renumber, reformat or remove these tokens"""

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "auto": "Auto detect",
    "ja": "日本語",
    "en": "English",
    "zh-Hans": "中文（简体）",
    "zh-Hant": "中文（繁體）",
    "ko": "한국어",
    "fr": "Français",
    "de": "Deutsch",
    "es": "Español",
    "it": "Italiano",
    "pt": "Português",
    "ru": "Русский",
    "vi": "Tiếng Việt",
    "id": "Bahasa Indonesia",
    "ms": "Bahasa Melayu",
    "nl": "Nederlands",
    "pl": "Polski",
    "tr": "Türkçe",
    "uk": "Українська",
    "cs": "Čeština",
    "da": "Dansk",
    "fi": "Suomi",
    "el": "Ελληνικά",
    "hu": "Magyar",
    "no": "Norsk",
    "ro": "Română",
    "sk": "Slovenčina",
    "sv": "Svenska",
}


def get_language_name(code: str) -> str:
    """Return display name for a language code (unknown codes pass through)."""
    return SUPPORTED_LANGUAGES.get(code, code)


@dataclass
class AnalysisConfig:
    """Configuration for the document analysis client.

    Attributes:
        endpoint: Service endpoint (from DOCUMENT_INTELLIGENCE_ENDPOINT if not provided)
        api_key: Subscription key (from DOCUMENT_INTELLIGENCE_KEY if not provided)
        model_id: Layout analysis model
        read_model_id: Text-reading model used for image OCR
        api_version: REST API version
        timeout_sec: Request timeout in seconds
        max_retries: Maximum number of retry attempts
        backoff_base: Base for exponential backoff calculation
        poll_interval_s: Delay between result polls
        max_poll_attempts: Polls before giving up on an analysis
    """
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    model_id: str = "prebuilt-layout"
    read_model_id: str = "prebuilt-read"
    api_version: str = "2024-11-30"
    timeout_sec: int = 60
    max_retries: int = 3
    backoff_base: float = 1.5
    poll_interval_s: float = 1.0
    max_poll_attempts: int = 120

    def __post_init__(self):
        """Load endpoint and key from environment if not provided."""
        if self.endpoint is None:
            self.endpoint = os.getenv("DOCUMENT_INTELLIGENCE_ENDPOINT")
        if self.api_key is None:
            self.api_key = os.getenv("DOCUMENT_INTELLIGENCE_KEY")
        if not self.endpoint:
            raise ValueError(
                "DOCUMENT_INTELLIGENCE_ENDPOINT is required (set in environment or pass explicitly)"
            )
        if not self.api_key:
            raise ValueError(
                "DOCUMENT_INTELLIGENCE_KEY is required (set in environment or pass explicitly)"
            )
        self.endpoint = self.endpoint.rstrip("/")


@dataclass
class TranslatorConfig:
    """Configuration for the chat-completions translation client.

    Attributes:
        api_key: API key (from OPENAI_API_KEY if not provided)
        base_url: OpenAI-compatible base URL (from OPENAI_BASE_URL)
        model: Model name (from OPENAI_MODEL, default: gpt-4o)
        temperature: Sampling temperature
        timeout_sec: Request timeout in seconds
        max_retries: Maximum number of retry attempts
        backoff_base: Base for exponential backoff calculation
    """
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    temperature: float = 0.2
    timeout_sec: int = 180
    max_retries: int = 3
    backoff_base: float = 1.5

    def __post_init__(self):
        """Load API settings from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY is required (set in environment or pass explicitly)")
        if self.base_url is None:
            self.base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        if self.model is None:
            self.model = os.getenv("OPENAI_MODEL", "gpt-4o")
        self.base_url = self.base_url.rstrip("/")


@dataclass
class PipelineConfig:
    """Configuration for DocumentTranslator.

    Attributes:
        max_chunk_size: Maximum characters per translation chunk
        chunk_workers: Parallel chunk translations (1 = sequential)
        max_file_size_bytes: Upload limit
        image_source: "document" (images from the source binary) or
                      "figures" (cropped figures from the analysis service)
        vertical_margin_ratio: Tolerance around a figure's vertical extent,
                               as a fraction of its height
        leak_threshold: Characters of figure text checked for leakage
        state_dir: Directory for artifacts (None = in-memory storage)
        log_level: Logging level (default: INFO)
    """
    max_chunk_size: int = 8000
    chunk_workers: int = 1
    max_file_size_bytes: int = 40 * 1024 * 1024
    image_source: str = "document"
    vertical_margin_ratio: float = 0.1
    leak_threshold: int = 20
    state_dir: Optional[Path] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.image_source not in ("document", "figures"):
            raise ValueError(
                f"image_source must be 'document' or 'figures', got '{self.image_source}'"
            )
        if self.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")


@dataclass
class TranslationOptions:
    """Per-request translation options.

    Attributes:
        source_language: Source language code (None = auto detect)
        tone: Tone hint, e.g. formal, casual, technical
        domain: Domain hint, e.g. legal, medical, general
        system_prompt: Custom system prompt (None/blank = default)
        user_prompt: Custom user prompt template, may contain {target_language}
        custom_instructions: Extra instructions appended to the user prompt
        preserve_formatting: Keep headings/lists/tables as Markdown
    """
    source_language: Optional[str] = None
    tone: Optional[str] = None
    domain: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None
    custom_instructions: Optional[str] = None
    preserve_formatting: bool = True

    def effective_system_prompt(self) -> str:
        """Return the custom system prompt or the default one.

        The placeholder rules are appended to every prompt, custom or not.
        """
        prompt = self.system_prompt if self.system_prompt and self.system_prompt.strip() else DEFAULT_SYSTEM_PROMPT
        if self.preserve_formatting and "Markdown" not in prompt:
            prompt += MARKDOWN_INSTRUCTIONS
        return prompt + PLACEHOLDER_INSTRUCTIONS

    def effective_user_prompt(self, target_language: str) -> str:
        """Return the user prompt with the target language filled in.

        Args:
            target_language: Display name of the target language
        """
        template = self.user_prompt if self.user_prompt and self.user_prompt.strip() else DEFAULT_USER_PROMPT_TEMPLATE
        prompt = template.replace("{target_language}", target_language)

        hints = []
        if self.source_language and self.source_language != "auto":
            hints.append(f"- Source language: {get_language_name(self.source_language)}")
        if self.tone:
            hints.append(f"- Tone: {self.tone}")
        if self.domain:
            hints.append(f"- Domain: {self.domain}")
        if hints:
            prompt += "\n" + "\n".join(hints)

        if self.custom_instructions and self.custom_instructions.strip():
            prompt += f"\n\nAdditional instructions:\n{self.custom_instructions}"

        return prompt
