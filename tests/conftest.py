"""Shared fixtures: in-memory documents, fake clients and a wired translator."""

import io
import threading
from typing import Callable, Dict, List, Optional

import fitz  # pymupdf
import pytest
from docx import Document
from docx.shared import Inches
from PIL import Image

from layout_translator.core.analysis_client import AnalysisClientError, BaseAnalysisClient
from layout_translator.core.observer import RecordingObserver
from layout_translator.core.processor import DocumentTranslator
from layout_translator.core.storage import ArtifactStore, MemoryStorage
from layout_translator.core.translation_client import BaseTranslationClient, TranslationClientError
from layout_translator.schemas.config import PipelineConfig
from layout_translator.schemas.document import (
    AnalysisResult,
    AnalyzedFigure,
    BoundingRegion,
    OcrResult,
    TextSpan,
)


def make_png(color: str = "red", size: tuple = (40, 30)) -> bytes:
    """Create a small PNG image."""
    img = Image.new("RGB", size, color=color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeAnalysisClient(BaseAnalysisClient):
    """Analysis client returning canned layout and read results."""

    def __init__(
        self,
        result: AnalysisResult,
        figure_images: Optional[Dict[str, bytes]] = None,
        ocr_result: Optional[OcrResult] = None,
    ):
        self.result = result
        self.figure_images = figure_images or {}
        self.ocr_result = ocr_result or OcrResult(text="")
        self.calls = 0
        self.read_calls = 0

    def analyze(self, data, cancel_token=None):
        self.calls += 1
        return self.result

    def get_figure_image(self, result_id, figure_id, cancel_token=None):
        if figure_id not in self.figure_images:
            raise AnalysisClientError(f"figure {figure_id} not found")
        return self.figure_images[figure_id]

    def read_text(self, data, cancel_token=None):
        self.read_calls += 1
        return self.ocr_result


class FakeTranslationClient(BaseTranslationClient):
    """Translation client that upper-cases text (placeholders survive unchanged)."""

    def __init__(
        self,
        transform: Optional[Callable[[str], str]] = None,
        fail_on: Optional[str] = None,
    ):
        self.transform = transform or (lambda text: text.upper())
        self.fail_on = fail_on
        self.calls: List[str] = []
        self.prompts: List[tuple] = []
        self._lock = threading.Lock()

    def translate(self, text, target_language, system_prompt, user_prompt, cancel_token=None):
        with self._lock:
            self.calls.append(text)
            self.prompts.append((system_prompt, user_prompt))
        if self.fail_on and self.fail_on in text:
            raise TranslationClientError("backend unavailable")
        return {
            "translated_text": self.transform(text),
            "input_tokens": len(text),
            "output_tokens": len(text) // 2,
        }


@pytest.fixture
def png_bytes() -> bytes:
    """Red PNG image."""
    return make_png("red")


@pytest.fixture
def pdf_with_images() -> bytes:
    """Two-page PDF with one image per page."""
    doc = fitz.open()
    for color in ("red", "blue"):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page with a {color} picture")
        page.insert_image(fitz.Rect(72, 100, 172, 175), stream=make_png(color))
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def docx_with_images() -> bytes:
    """DOCX with two images on page 1 and one on page 2."""
    document = Document()
    document.add_paragraph("Introduction")
    document.add_picture(io.BytesIO(make_png("red")), width=Inches(1))
    document.add_picture(io.BytesIO(make_png("green")), width=Inches(1))
    document.add_page_break()
    document.add_paragraph("Second page")
    document.add_picture(io.BytesIO(make_png("blue")), width=Inches(1))
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture
def figure_analysis() -> AnalysisResult:
    """One figure whose OCR text sits between two paragraphs."""
    return AnalysisResult(
        content="Intro\n\nFIGURECAPTIONTEXT\n\nConclusion",
        figures=[
            AnalyzedFigure(
                figure_index=0,
                figure_id="1.1",
                bounding_regions=[BoundingRegion(page_number=1, polygon=[1, 2, 5, 2, 5, 4, 1, 4])],
                spans=[TextSpan(offset=7, length=17)],
            )
        ],
        result_id="result-1",
        page_count=1,
    )


@pytest.fixture
def observer() -> RecordingObserver:
    """Observer that records stages and warnings."""
    return RecordingObserver()


@pytest.fixture
def memory_store() -> ArtifactStore:
    """Artifact store backed by MemoryStorage."""
    return ArtifactStore(MemoryStorage(), exists_poll_interval_s=0)


@pytest.fixture
def translation_client() -> FakeTranslationClient:
    """Upper-casing translation client."""
    return FakeTranslationClient()


@pytest.fixture
def translator(figure_analysis, translation_client, memory_store, observer) -> DocumentTranslator:
    """DocumentTranslator wired with fake clients and in-memory storage."""
    return DocumentTranslator(
        analysis_client=FakeAnalysisClient(figure_analysis),
        translation_client=translation_client,
        store=memory_store,
        config=PipelineConfig(),
        observer=observer,
    )


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Factory building PNG images of a given color."""
    return make_png


@pytest.fixture
def analysis_client_factory() -> Callable[..., FakeAnalysisClient]:
    """Factory building FakeAnalysisClient instances."""
    return FakeAnalysisClient


@pytest.fixture
def translation_client_factory() -> Callable[..., FakeTranslationClient]:
    """Factory building FakeTranslationClient instances."""
    return FakeTranslationClient
