"""Unit tests for the document analysis client."""

from unittest.mock import Mock, patch

import pytest
import requests

from layout_translator.core.analysis_client import (
    AnalysisClientError,
    DocumentIntelligenceClient,
    parse_analyze_result,
    parse_read_result,
)
from layout_translator.schemas.config import AnalysisConfig

OPERATION_URL = (
    "https://example.cognitiveservices.azure.com/documentintelligence/documentModels/"
    "prebuilt-layout/analyzeResults/op-123?api-version=2024-11-30"
)

READ_OPERATION_URL = (
    "https://example.cognitiveservices.azure.com/documentintelligence/documentModels/"
    "prebuilt-read/analyzeResults/read-9?api-version=2024-11-30"
)

READ_RESULT = {
    "content": "Invoice 42\nTotal: 10 EUR",
    "pages": [
        {
            "pageNumber": 1,
            "words": [
                {"content": "Invoice", "confidence": 0.99, "span": {"offset": 0, "length": 7}},
                {"content": "42", "confidence": 0.95, "span": {"offset": 8, "length": 2}},
                {"content": "Total:", "confidence": 0.9, "span": {"offset": 11, "length": 6}},
                {"content": "10", "confidence": 0.8, "span": {"offset": 18, "length": 2}},
                {"content": "EUR", "confidence": 0.7, "span": {"offset": 21, "length": 3}},
            ],
            "lines": [
                {"content": "Invoice 42", "spans": [{"offset": 0, "length": 10}]},
                {"content": "Total: 10 EUR", "spans": [{"offset": 11, "length": 13}]},
            ],
        }
    ],
    "languages": [
        {"locale": "de", "confidence": 0.4},
        {"locale": "en", "confidence": 0.9},
    ],
}

ANALYZE_RESULT = {
    "content": "# Report\n\nChart text\n\nBody",
    "pages": [{"pageNumber": 1}],
    "figures": [
        {
            "id": "1.1",
            "boundingRegions": [{"pageNumber": 1, "polygon": [1, 2, 5, 2, 5, 4, 1, 4]}],
            "spans": [{"offset": 10, "length": 10}],
            "caption": {"content": "Figure 1: Sales"},
        }
    ],
    "paragraphs": [
        {"role": "title", "boundingRegions": [{"pageNumber": 1, "polygon": [1, 0, 5, 0, 5, 1, 1, 1]}],
         "spans": [{"offset": 0, "length": 8}]},
        {"boundingRegions": [{"pageNumber": 1, "polygon": [1, 6, 5, 6, 5, 7, 1, 7]}],
         "spans": [{"offset": 22, "length": 4}]},
    ],
    "tables": [],
}


def _response(status: int = 200, json_data=None, headers=None, content: bytes = b"") -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.json.return_value = json_data
    resp.content = content
    resp.text = str(json_data)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}", response=resp)
    return resp


@pytest.fixture
def analysis_config():
    """Create test analysis config."""
    return AnalysisConfig(
        endpoint="https://example.cognitiveservices.azure.com/",
        api_key="test_key",
        max_retries=2,
        poll_interval_s=0,
        max_poll_attempts=3,
    )


@pytest.fixture
def client(analysis_config):
    """Create analysis client."""
    return DocumentIntelligenceClient(analysis_config)


class TestAnalysisConfig:
    """Test AnalysisConfig dataclass."""

    def test_endpoint_trailing_slash_removed(self, analysis_config) -> None:
        """Test endpoint normalisation."""
        assert analysis_config.endpoint == "https://example.cognitiveservices.azure.com"

    def test_from_environment(self, monkeypatch) -> None:
        """Test settings load from environment variables."""
        monkeypatch.setenv("DOCUMENT_INTELLIGENCE_ENDPOINT", "https://env.example.com")
        monkeypatch.setenv("DOCUMENT_INTELLIGENCE_KEY", "env_key")

        config = AnalysisConfig()

        assert config.endpoint == "https://env.example.com"
        assert config.api_key == "env_key"
        assert config.model_id == "prebuilt-layout"

    def test_missing_settings(self, monkeypatch) -> None:
        """Test missing endpoint or key raises ValueError."""
        monkeypatch.delenv("DOCUMENT_INTELLIGENCE_ENDPOINT", raising=False)
        monkeypatch.delenv("DOCUMENT_INTELLIGENCE_KEY", raising=False)

        with pytest.raises(ValueError, match="DOCUMENT_INTELLIGENCE_ENDPOINT"):
            AnalysisConfig()
        with pytest.raises(ValueError, match="DOCUMENT_INTELLIGENCE_KEY"):
            AnalysisConfig(endpoint="https://x")


class TestParseAnalyzeResult:
    """Test conversion of analyzeResult JSON."""

    def test_parse(self) -> None:
        """Test figures, paragraphs and pages are parsed."""
        result = parse_analyze_result(ANALYZE_RESULT, "op-123")

        assert result.content.startswith("# Report")
        assert result.result_id == "op-123"
        assert result.page_count == 1
        assert len(result.figures) == 1
        figure = result.figures[0]
        assert figure.figure_id == "1.1"
        assert figure.caption == "Figure 1: Sales"
        assert figure.spans[0].offset == 10
        assert figure.bounding_regions[0].vertical_extent() == (2.0, 4.0)
        assert [p.role for p in result.paragraphs] == ["title", None]

    def test_missing_content(self) -> None:
        """Test a payload without content is rejected."""
        with pytest.raises(AnalysisClientError):
            parse_analyze_result({"pages": []})

    def test_figure_without_polygon(self) -> None:
        """Test figures lacking geometry parse with empty polygons."""
        result = parse_analyze_result({
            "content": "x",
            "figures": [{"id": "1.1", "boundingRegions": [{"pageNumber": 1}]}],
        })
        assert result.figures[0].bounding_regions[0].vertical_extent() is None


class TestParseReadResult:
    """Test conversion of read-model JSON."""

    def test_parse(self) -> None:
        """Test lines, pages, language and confidences are parsed."""
        result = parse_read_result(READ_RESULT)

        assert result.text == "Invoice 42\nTotal: 10 EUR"
        assert [line.text for line in result.lines] == ["Invoice 42", "Total: 10 EUR"]
        assert result.lines[0].confidence == pytest.approx(0.97)
        assert result.lines[1].confidence == pytest.approx(0.8)
        assert result.page_count == 1
        assert result.language == "en"
        assert result.confidence == pytest.approx(0.868)

    def test_without_words_or_languages(self) -> None:
        """Test missing confidences default to 1.0 and language to None."""
        result = parse_read_result({
            "content": "Hello",
            "pages": [{"pageNumber": 1, "lines": [{"content": "Hello", "spans": [{"offset": 0, "length": 5}]}]}],
        })

        assert result.lines[0].confidence == 1.0
        assert result.confidence == 1.0
        assert result.language is None

    def test_missing_content(self) -> None:
        """Test a payload without content is rejected."""
        with pytest.raises(AnalysisClientError):
            parse_read_result({"pages": []})


class TestDocumentIntelligenceClient:
    """Test DocumentIntelligenceClient."""

    @patch("requests.request")
    def test_analyze_success(self, mock_request, client) -> None:
        """Test submit, poll until succeeded, parse result."""
        mock_request.side_effect = [
            _response(202, headers={"Operation-Location": OPERATION_URL}),
            _response(200, {"status": "running"}),
            _response(200, {"status": "succeeded", "analyzeResult": ANALYZE_RESULT}),
        ]

        result = client.analyze(b"%PDF-1.7 data")

        assert result.result_id == "op-123"
        assert len(result.figures) == 1
        assert mock_request.call_count == 3

        submit = mock_request.call_args_list[0]
        assert submit.args[0] == "POST"
        assert submit.args[1].endswith("/documentintelligence/documentModels/prebuilt-layout:analyze")
        assert submit.kwargs["params"]["outputContentFormat"] == "markdown"
        assert submit.kwargs["params"]["stringIndexType"] == "unicodeCodePoint"
        assert "base64Source" in submit.kwargs["json"]
        assert submit.kwargs["headers"]["Ocp-Apim-Subscription-Key"] == "test_key"

        poll = mock_request.call_args_list[1]
        assert poll.args == ("GET", OPERATION_URL)

    @patch("requests.request")
    def test_analysis_failed_status(self, mock_request, client) -> None:
        """Test a failed analysis raises AnalysisClientError."""
        mock_request.side_effect = [
            _response(202, headers={"Operation-Location": OPERATION_URL}),
            _response(200, {"status": "failed", "error": {"code": "InvalidContent", "message": "corrupt"}}),
        ]

        with pytest.raises(AnalysisClientError, match="InvalidContent"):
            client.analyze(b"data")

    @patch("requests.request")
    def test_polling_timeout(self, mock_request, client) -> None:
        """Test an analysis that never finishes raises AnalysisClientError."""
        mock_request.side_effect = [_response(202, headers={"Operation-Location": OPERATION_URL})] + [
            _response(200, {"status": "running"}) for _ in range(3)
        ]

        with pytest.raises(AnalysisClientError, match="did not complete"):
            client.analyze(b"data")

    @patch("requests.request")
    def test_missing_operation_location(self, mock_request, client) -> None:
        """Test a submit response without Operation-Location is an error."""
        mock_request.return_value = _response(202)

        with pytest.raises(AnalysisClientError, match="Operation-Location"):
            client.analyze(b"data")

    @patch("layout_translator.core.retry.time.sleep")
    @patch("requests.request")
    def test_submit_retried_on_server_error(self, mock_request, mock_sleep, client) -> None:
        """Test a 503 on submit is retried."""
        mock_request.side_effect = [
            _response(503, {"error": "busy"}),
            _response(202, headers={"Operation-Location": OPERATION_URL}),
            _response(200, {"status": "succeeded", "analyzeResult": ANALYZE_RESULT}),
        ]

        result = client.analyze(b"data")

        assert result.content
        assert mock_sleep.call_count == 1

    @patch("requests.request")
    def test_client_error_not_retried(self, mock_request, client) -> None:
        """Test a 401 on submit fails immediately."""
        mock_request.return_value = _response(401, {"error": "unauthorized"})

        with pytest.raises(AnalysisClientError):
            client.analyze(b"data")

        assert mock_request.call_count == 1

    @patch("requests.request")
    def test_get_figure_image(self, mock_request, client, png_bytes) -> None:
        """Test figure images are fetched from the analyzeResults endpoint."""
        mock_request.return_value = _response(200, content=png_bytes)

        data = client.get_figure_image("op-123", "1.1")

        assert data == png_bytes
        url = mock_request.call_args.args[1]
        assert url.endswith("/analyzeResults/op-123/figures/1.1")

    @patch("requests.request")
    def test_read_text(self, mock_request, client) -> None:
        """Test images are submitted to the read model and parsed into lines."""
        mock_request.side_effect = [
            _response(202, headers={"Operation-Location": READ_OPERATION_URL}),
            _response(200, {"status": "succeeded", "analyzeResult": READ_RESULT}),
        ]

        result = client.read_text(b"\x89PNG data")

        assert result.line_count == 2
        submit = mock_request.call_args_list[0]
        assert submit.args[1].endswith("/documentintelligence/documentModels/prebuilt-read:analyze")
        assert submit.kwargs["params"]["api-version"] == "2024-11-30"
        assert "outputContentFormat" not in submit.kwargs["params"]

    @patch("requests.request")
    def test_read_text_failed(self, mock_request, client) -> None:
        """Test a failed read raises AnalysisClientError."""
        mock_request.side_effect = [
            _response(202, headers={"Operation-Location": READ_OPERATION_URL}),
            _response(200, {"status": "failed", "error": {"code": "InvalidImage", "message": "unreadable"}}),
        ]

        with pytest.raises(AnalysisClientError, match="InvalidImage"):
            client.read_text(b"data")
