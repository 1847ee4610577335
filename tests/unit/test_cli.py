"""Tests for the layout-translate command line interface."""

from pathlib import Path
from unittest.mock import patch

import pytest

from layout_translator import cli
from layout_translator.core.processor import DocumentTranslator


@pytest.fixture
def pdf_file(tmp_path: Path, pdf_with_images: bytes) -> Path:
    """PDF written to a temporary file."""
    path = tmp_path / "report.pdf"
    path.write_bytes(pdf_with_images)
    return path


class TestValidateArguments:
    """Test suite for validate_arguments."""

    def test_valid(self, pdf_file: Path) -> None:
        """Test an existing PDF and known language pass."""
        assert cli.validate_arguments(pdf_file, "ja") is None

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is reported."""
        assert "not found" in cli.validate_arguments(tmp_path / "nope.pdf", "ja")

    def test_directory(self, tmp_path: Path) -> None:
        """Test a directory is not accepted."""
        folder = tmp_path / "folder.pdf"
        folder.mkdir()
        assert "not a file" in cli.validate_arguments(folder, "ja")

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        """Test non PDF/DOCX files are reported."""
        path = tmp_path / "notes.txt"
        path.write_text("hi")
        assert "Unsupported file type" in cli.validate_arguments(path, "ja")

    @pytest.mark.parametrize("language", ["auto", "klingon"])
    def test_bad_target_language(self, pdf_file: Path, language: str) -> None:
        """Test auto and unknown codes are not valid targets."""
        assert "target language" in cli.validate_arguments(pdf_file, language)


class TestCreateRunDir:
    """Test suite for create_run_dir."""

    def test_creates_timestamped_dir(self, tmp_path: Path) -> None:
        """Test run directories are created under the parent."""
        run_dir = cli.create_run_dir(tmp_path)

        assert run_dir.parent == tmp_path
        assert run_dir.name.startswith("run_")
        assert run_dir.is_dir()


class TestMain:
    """Test suite for main."""

    def test_missing_file_exit_code(self, tmp_path: Path, capsys) -> None:
        """Test a missing document exits with 1."""
        assert cli.main([str(tmp_path / "missing.pdf"), "-t", "de"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_target_language_required(self, pdf_file: Path) -> None:
        """Test argparse rejects a call without --target-language."""
        with pytest.raises(SystemExit):
            cli.main([str(pdf_file)])

    def test_success(
        self, tmp_path: Path, pdf_file: Path, figure_analysis, analysis_client_factory, translation_client, capsys
    ) -> None:
        """Test a full run writes the translation into the run directory."""
        created = {}

        def build_translator(config):
            created["config"] = config
            return DocumentTranslator(
                analysis_client=analysis_client_factory(figure_analysis),
                translation_client=translation_client,
                config=config,
            )

        output_dir = tmp_path / "runs"
        with patch("layout_translator.cli.DocumentTranslator", side_effect=build_translator), \
                patch("layout_translator.cli.load_dotenv"):
            exit_code = cli.main([
                str(pdf_file), "-t", "de", "-o", str(output_dir),
                "--max-chunk-size", "500", "--workers", "2",
            ])

        assert exit_code == 0
        config = created["config"]
        assert config.max_chunk_size == 500
        assert config.chunk_workers == 2
        assert config.image_source == "document"

        run_dirs = list(output_dir.glob("run_*"))
        assert len(run_dirs) == 1
        translations = list((run_dirs[0] / "translations").glob("report_de_*.md"))
        assert len(translations) == 1
        assert "INTRO" in translations[0].read_text(encoding="utf-8")
        assert (run_dirs[0] / "logs" / "run.log").exists()
        assert "Translation completed successfully!" in capsys.readouterr().out

    def test_failure_exit_code(self, tmp_path: Path, pdf_file: Path) -> None:
        """Test pipeline errors exit with 1."""
        with patch("layout_translator.cli.DocumentTranslator", side_effect=ValueError("OPENAI_API_KEY is required")), \
                patch("layout_translator.cli.load_dotenv"):
            assert cli.main([str(pdf_file), "-t", "de", "-o", str(tmp_path / "runs")]) == 1
