"""Tests for upload validation."""

import pytest

from layout_translator.preprocessing.validation import (
    MAX_FILE_SIZE_BYTES,
    MAX_IMAGE_SIZE_BYTES,
    DocumentValidationError,
    validate_document,
    validate_image,
)


class TestValidateDocument:
    """Test suite for validate_document."""

    @pytest.mark.parametrize("filename,expected", [
        ("report.pdf", ".pdf"),
        ("REPORT.PDF", ".pdf"),
        ("letter.docx", ".docx"),
        ("dir.v2/Letter.Final.DOCX", ".docx"),
    ])
    def test_supported(self, filename: str, expected: str) -> None:
        """Test PDF and DOCX pass and return the lower-case extension."""
        assert validate_document(filename, b"data") == expected

    @pytest.mark.parametrize("filename", ["notes.txt", "old.doc", "image.png", "README"])
    def test_unsupported(self, filename: str) -> None:
        """Test other formats are rejected."""
        with pytest.raises(DocumentValidationError, match="Unsupported"):
            validate_document(filename, b"data")

    def test_empty(self) -> None:
        """Test empty uploads are rejected."""
        with pytest.raises(DocumentValidationError, match="empty"):
            validate_document("report.pdf", b"")

    def test_too_large(self) -> None:
        """Test uploads over the limit are rejected."""
        with pytest.raises(DocumentValidationError, match="limit"):
            validate_document("report.pdf", b"x" * 11, max_file_size_bytes=10)

    def test_default_limit(self) -> None:
        """Test the default limit is 40MB."""
        assert MAX_FILE_SIZE_BYTES == 40 * 1024 * 1024

    def test_is_value_error(self) -> None:
        """Test validation errors can be handled as ValueError."""
        with pytest.raises(ValueError):
            validate_document("a.txt", b"x")


class TestValidateImage:
    """Test suite for validate_image."""

    @pytest.mark.parametrize("filename,expected", [
        ("scan.jpg", ".jpg"),
        ("scan.JPEG", ".jpeg"),
        ("receipt.png", ".png"),
        ("fax.tif", ".tif"),
        ("fax.tiff", ".tiff"),
        ("old.bmp", ".bmp"),
    ])
    def test_supported(self, filename: str, expected: str) -> None:
        """Test common image formats pass."""
        assert validate_image(filename, b"data") == expected

    @pytest.mark.parametrize("filename", ["report.pdf", "letter.docx", "anim.gif"])
    def test_unsupported(self, filename: str) -> None:
        """Test documents and other formats are rejected."""
        with pytest.raises(DocumentValidationError, match="Unsupported"):
            validate_image(filename, b"data")

    def test_empty(self) -> None:
        """Test empty images are rejected."""
        with pytest.raises(DocumentValidationError, match="empty"):
            validate_image("scan.png", b"")

    def test_default_limit(self) -> None:
        """Test images over 10MB are rejected."""
        assert MAX_IMAGE_SIZE_BYTES == 10 * 1024 * 1024
        with pytest.raises(DocumentValidationError, match="10MB"):
            validate_image("scan.png", b"x" * (MAX_IMAGE_SIZE_BYTES + 1))
