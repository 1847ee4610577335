"""CLI interface for document translation.

This module provides the command-line interface for translating PDF/DOCX
documents using TranslateDocumentOperation under the hood.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .core.processor import DocumentTranslator
from .operations.translate_document import TranslateDocumentOperation
from .preprocessing.validation import SUPPORTED_EXTENSIONS
from .schemas.config import SUPPORTED_LANGUAGES, PipelineConfig, TranslationOptions

LOG_FORMAT = "%(asctime)s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"

DEFAULT_OUTPUT_DIR = Path("runs")


def setup_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """Setup logging: console + optional file handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (UTF-8). If None, console only.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logging.getLogger().addHandler(fh)


def validate_arguments(document_path: Path, target_language: str) -> Optional[str]:
    """Validate CLI arguments.

    Returns:
        Error message, or None if arguments are valid
    """
    if not document_path.exists():
        return f"Document not found: {document_path}"

    if not document_path.is_file():
        return f"Path is not a file: {document_path}"

    if document_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        return f"Unsupported file type: {document_path.suffix or document_path.name} (expected .pdf or .docx)"

    if target_language not in SUPPORTED_LANGUAGES or target_language == "auto":
        return f"Unsupported target language: {target_language}"

    return None


def create_run_dir(parent_dir: Path) -> Path:
    """Create timestamped run subdirectory.

    Args:
        parent_dir: Parent directory for runs

    Returns:
        Path to created run directory, e.g. parent_dir/run_2026-02-09_171500/
    """
    ts = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    run_dir = parent_dir / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate PDF/DOCX documents to Markdown, keeping images in place",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  layout-translate report.pdf -t ja
  layout-translate report.docx -t de --output-dir ./my_runs
  layout-translate report.pdf -t en --workers 4 --log-level DEBUG

Each run creates a timestamped subdirectory inside --output-dir:
  output-dir/run_2026-02-09_171500/
    images/            extracted images
    translations/      translated Markdown
    reports/           YAML diagnostics
    logs/run.log       full log
        """,
    )

    parser.add_argument(
        "document_path",
        type=Path,
        help="Path to the PDF or DOCX file to translate",
    )

    parser.add_argument(
        "--target-language", "-t",
        type=str,
        required=True,
        help="Target language code, e.g. ja, en, de",
    )

    parser.add_argument(
        "--source-language",
        type=str,
        default=None,
        help="Source language code (default: auto detect)",
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Parent directory for run folders (default: {DEFAULT_OUTPUT_DIR})",
    )

    parser.add_argument(
        "--max-chunk-size",
        type=int,
        default=8000,
        help="Maximum characters per translation chunk (default: 8000)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Parallel chunk translations (default: 1)",
    )

    parser.add_argument(
        "--image-source",
        type=str,
        default="document",
        choices=["document", "figures"],
        help="Take images from the document file or from analysed figures (default: document)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        0 on success, 1 on error
    """
    args = build_parser().parse_args(argv)

    error = validate_arguments(args.document_path, args.target_language)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        load_dotenv()

        run_dir = create_run_dir(args.output_dir)
        log_file = run_dir / "logs" / "run.log"

        setup_logging(args.log_level, log_file)
        logger = logging.getLogger(__name__)

        logger.info(f"Run directory: {run_dir}")
        logger.info(f"Translating: {args.document_path} -> {args.target_language}")

        config = PipelineConfig(
            max_chunk_size=args.max_chunk_size,
            chunk_workers=args.workers,
            image_source=args.image_source,
            state_dir=run_dir,
            log_level=args.log_level,
        )

        logger.info("Initializing DocumentTranslator...")
        translator = DocumentTranslator(config=config)

        operation = TranslateDocumentOperation(translator)
        result = operation.execute(
            args.document_path.read_bytes(),
            args.document_path.name,
            args.target_language,
            TranslationOptions(source_language=args.source_language),
        )

        diagnostics = result.diagnostics
        print()
        print("=" * 60)
        print("Translation completed successfully!")
        print("=" * 60)
        print(f"Run directory:   {run_dir}")
        print(f"Translation:     {run_dir / 'translations' / result.artifact_name}")
        print(f"Characters:      {result.character_count}")
        print(f"Images:          {result.image_count}")
        print(f"Chunks:          {diagnostics.chunk_count if diagnostics else 0}")
        print(f"Tokens:          {result.tokens_used} ({result.input_tokens} in / {result.output_tokens} out)")
        print(f"Duration:        {result.duration.total_seconds():.1f}s")
        print(f"Log:             {log_file}")
        print("=" * 60)

        return 0

    except KeyboardInterrupt:
        print("\nTranslation interrupted by user", file=sys.stderr)
        return 1

    except Exception as e:
        logging.getLogger(__name__).exception(f"Error during translation: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
