"""Document analysis client for the Document Intelligence REST API.

Submits a document, polls the long-running analysis and converts the JSON
result into AnalysisResult (layout model: Markdown content, figures,
paragraphs, tables) or OcrResult (read model: lines of text from images).
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..schemas.config import AnalysisConfig
from ..schemas.document import (
    AnalysisResult,
    AnalyzedFigure,
    BoundingRegion,
    LayoutElement,
    OcrLine,
    OcrResult,
    TextSpan,
)
from .cancellation import CancellationToken
from .retry import PollingTimeout, call_with_retry, poll_until

logger = logging.getLogger(__name__)


class AnalysisClientError(RuntimeError):
    """Raised when document analysis fails after all retries."""


class BaseAnalysisClient(ABC):
    """Base interface for document analysis clients."""

    @abstractmethod
    def analyze(
        self,
        data: bytes,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """Analyze a document.

        Args:
            data: Document bytes (PDF or DOCX)
            cancel_token: Optional cancellation token

        Returns:
            AnalysisResult with linear Markdown text and layout elements
        """
        raise NotImplementedError

    @abstractmethod
    def get_figure_image(
        self,
        result_id: str,
        figure_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bytes:
        """Fetch the cropped image of an analysed figure (PNG bytes)."""
        raise NotImplementedError

    @abstractmethod
    def read_text(
        self,
        data: bytes,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OcrResult:
        """Read the text of an image (JPEG, PNG, TIFF, BMP) or scanned page."""
        raise NotImplementedError


def _parse_spans(raw: List[Dict[str, Any]]) -> List[TextSpan]:
    return [
        TextSpan(offset=int(s.get("offset", 0)), length=int(s.get("length", 0)))
        for s in raw or []
    ]


def _parse_regions(raw: List[Dict[str, Any]]) -> List[BoundingRegion]:
    return [
        BoundingRegion(
            page_number=int(r.get("pageNumber", 0)),
            polygon=[float(v) for v in r.get("polygon") or []],
        )
        for r in raw or []
    ]


def parse_analyze_result(payload: Dict[str, Any], result_id: str = "") -> AnalysisResult:
    """Convert an "analyzeResult" JSON object into AnalysisResult.

    Args:
        payload: The analyzeResult object
        result_id: Analysis operation id

    Raises:
        AnalysisClientError: If the payload has no content
    """
    if "content" not in payload:
        raise AnalysisClientError("Analysis result has no 'content' property")

    figures = []
    for index, raw in enumerate(payload.get("figures") or []):
        caption = raw.get("caption") or {}
        figures.append(AnalyzedFigure(
            figure_index=index,
            figure_id=str(raw.get("id", "")),
            bounding_regions=_parse_regions(raw.get("boundingRegions")),
            spans=_parse_spans(raw.get("spans")),
            caption=caption.get("content", "") if isinstance(caption, dict) else str(caption),
        ))

    paragraphs = [
        LayoutElement(
            kind="paragraph",
            bounding_regions=_parse_regions(raw.get("boundingRegions")),
            spans=_parse_spans(raw.get("spans")),
            role=raw.get("role"),
        )
        for raw in payload.get("paragraphs") or []
    ]

    tables = [
        LayoutElement(
            kind="table",
            bounding_regions=_parse_regions(raw.get("boundingRegions")),
            spans=_parse_spans(raw.get("spans")),
        )
        for raw in payload.get("tables") or []
    ]

    return AnalysisResult(
        content=payload.get("content") or "",
        figures=figures,
        paragraphs=paragraphs,
        tables=tables,
        result_id=result_id,
        page_count=len(payload.get("pages") or []),
    )


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 1.0


def parse_read_result(payload: Dict[str, Any]) -> OcrResult:
    """Convert a read-model "analyzeResult" JSON object into OcrResult.

    Line confidence is the mean confidence of the words whose offsets fall
    inside the line's spans.

    Raises:
        AnalysisClientError: If the payload has no content
    """
    if "content" not in payload:
        raise AnalysisClientError("Read result has no 'content' property")

    lines: List[OcrLine] = []
    all_confidences: List[float] = []
    pages = payload.get("pages") or []

    for page in pages:
        page_number = int(page.get("pageNumber", 1))
        words = [
            (int((w.get("span") or {}).get("offset", -1)), float(w.get("confidence", 1.0)))
            for w in page.get("words") or []
        ]
        all_confidences.extend(c for _, c in words)

        for raw in page.get("lines") or []:
            spans = _parse_spans(raw.get("spans"))
            confidences = [
                c for offset, c in words
                if any(s.offset <= offset < s.end for s in spans)
            ]
            lines.append(OcrLine(
                text=raw.get("content", ""),
                page_number=page_number,
                confidence=round(_mean(confidences), 4),
            ))

    languages = payload.get("languages") or []
    best = max(languages, key=lambda lang: float(lang.get("confidence", 0.0)), default=None)

    return OcrResult(
        text=payload.get("content") or "",
        lines=lines,
        page_count=len(pages),
        language=best.get("locale") if best else None,
        confidence=round(_mean(all_confidences), 4),
    )


class DocumentIntelligenceClient(BaseAnalysisClient):
    """Document Intelligence REST client with retry and polling.

    Requests Markdown output, figure images and code-point offsets so that
    span offsets index Python strings directly.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        """Initialize analysis client.

        Args:
            config: Analysis configuration
        """
        self.config = config
        self.base_url = self._model_url(config.model_id)

    def _model_url(self, model_id: str) -> str:
        return f"{self.config.endpoint}/documentintelligence/documentModels/{model_id}"

    def _headers(self) -> Dict[str, str]:
        return {"Ocp-Apim-Subscription-Key": self.config.api_key}

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Single HTTP call; raises HTTPError on 4xx/5xx so retry can classify it."""
        resp = requests.request(
            method,
            url,
            headers=self._headers(),
            timeout=self.config.timeout_sec,
            **kwargs,
        )
        resp.raise_for_status()
        return resp

    def _request(
        self,
        method: str,
        url: str,
        description: str,
        cancel_token: Optional[CancellationToken] = None,
        **kwargs: Any,
    ) -> requests.Response:
        try:
            return call_with_retry(
                lambda: self._send(method, url, **kwargs),
                max_attempts=self.config.max_retries,
                backoff_base=self.config.backoff_base,
                description=description,
                cancel_token=cancel_token,
            )
        except requests.RequestException as exc:
            response = getattr(exc, "response", None)
            text = response.text[:400] if response is not None else str(exc)
            raise AnalysisClientError(f"{description} failed: {text}") from exc

    def _run_analysis(
        self,
        data: bytes,
        model_id: str,
        params: Dict[str, str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        """Submit data to a model and poll until the analysis finishes.

        Returns:
            (result id, "analyzeResult" JSON object)

        Raises:
            AnalysisClientError: On HTTP failure, failed analysis or polling timeout
        """
        body = {"base64Source": base64.b64encode(data).decode("utf-8")}

        logger.info(f"Submitting document for analysis ({len(data)} bytes, model={model_id})")
        resp = self._request(
            "POST",
            f"{self._model_url(model_id)}:analyze",
            "analysis submit",
            cancel_token,
            params={"api-version": self.config.api_version, **params},
            json=body,
        )

        operation_url = resp.headers.get("Operation-Location") or resp.headers.get("operation-location")
        if not operation_url:
            raise AnalysisClientError("Analysis response has no Operation-Location header")

        result_id = operation_url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]

        def fetch_status() -> Dict[str, Any]:
            return self._request("GET", operation_url, "analysis poll", cancel_token).json()

        try:
            status_payload = poll_until(
                fetch_status,
                is_done=lambda p: p.get("status") in ("succeeded", "failed", "canceled"),
                max_attempts=self.config.max_poll_attempts,
                interval_s=self.config.poll_interval_s,
                description=f"analysis {result_id}",
                cancel_token=cancel_token,
            )
        except PollingTimeout as exc:
            raise AnalysisClientError(str(exc)) from exc

        status = status_payload.get("status")
        if status != "succeeded":
            error = status_payload.get("error") or {}
            raise AnalysisClientError(
                f"Analysis {result_id} {status}: {error.get('code', '')} {error.get('message', '')}".strip()
            )

        return result_id, status_payload.get("analyzeResult") or {}

    def analyze(
        self,
        data: bytes,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """Run the layout model and wait for the result.

        Raises:
            AnalysisClientError: On HTTP failure, failed analysis or polling timeout
        """
        params = {
            "outputContentFormat": "markdown",
            "stringIndexType": "unicodeCodePoint",
            "output": "figures",
        }
        result_id, payload = self._run_analysis(data, self.config.model_id, params, cancel_token)

        result = parse_analyze_result(payload, result_id)
        logger.info(
            f"Analysis {result_id} succeeded: {len(result.content)} chars, "
            f"{len(result.figures)} figures, {len(result.paragraphs)} paragraphs, "
            f"{len(result.tables)} tables, {result.page_count} pages"
        )
        return result

    def read_text(
        self,
        data: bytes,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OcrResult:
        """Run the read model on an image and return its lines of text.

        Raises:
            AnalysisClientError: On HTTP failure, failed analysis or polling timeout
        """
        params = {"stringIndexType": "unicodeCodePoint"}
        result_id, payload = self._run_analysis(data, self.config.read_model_id, params, cancel_token)

        result = parse_read_result(payload)
        logger.info(
            f"Read {result_id} succeeded: {result.line_count} lines, "
            f"{result.page_count} pages, confidence {result.confidence:.2f}"
        )
        return result

    def get_figure_image(
        self,
        result_id: str,
        figure_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bytes:
        url = f"{self.base_url}/analyzeResults/{result_id}/figures/{figure_id}"
        resp = self._request(
            "GET",
            url,
            f"figure {figure_id} download",
            cancel_token,
            params={"api-version": self.config.api_version},
        )
        return resp.content
