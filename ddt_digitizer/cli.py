"""Command-line interface for single-document extraction and batch export.

``extract`` prints the formatted fields of one document; ``batch`` runs a
folder of DDT photos/scans through one session and writes the filled-in
template (optionally also as PDF); ``serve`` starts the HTTP API.
"""

import argparse
import json
import sys
from pathlib import Path

from ddt_digitizer.export.orchestrator import ExportService
from ddt_digitizer.export.pdf_converter import PdfConversionError
from ddt_digitizer.export.spreadsheet import TemplateWriteError
from ddt_digitizer.extraction.field_extractor import extract_fields
from ddt_digitizer.extraction.formatter import format_fields
from ddt_digitizer.ocr.document_processor import DocumentRecognizer, OCRError
from ddt_digitizer.sessions.store import SessionStore
from ddt_digitizer.utils.config import AppConfig, load_config
from ddt_digitizer.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.pdf")
_BATCH_SESSION = "cli-batch"


def _find_documents(input_dir: Path) -> list[Path]:
    """Supported document files in ``input_dir``, sorted by name."""
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def extract_single(
    file_path: Path,
    config: AppConfig,
    camera: bool = False,
) -> dict[str, object]:
    """Recognize one document and return its formatted fields.

    Args:
        file_path: Image or PDF of a DDT.
        config: Application configuration.
        camera: Whether the file is a phone photo (enables cleanup).

    Returns:
        Dictionary with filename, fields, confidence and raw_text.
    """
    recognizer = DocumentRecognizer(config)
    recognition = recognizer.recognize(
        file_path, file_path.name, "camera" if camera else "upload"
    )
    fields = format_fields(extract_fields(recognition.text, config.extraction))
    return {
        "filename": file_path.name,
        "fields": dict(fields),
        "confidence": round(recognition.confidence, 3),
        "raw_text": recognition.text,
    }


def process_folder(
    input_dir: Path,
    output_path: Path,
    config: AppConfig,
    template_path: Path | None = None,
    pdf: bool = False,
    camera: bool = False,
) -> dict[str, int]:
    """Process every document of a folder into one exported workbook.

    Documents are handled in file-name order, which becomes the row
    order. A document that fails OCR is logged and skipped.

    Args:
        input_dir: Directory containing DDT images/PDFs.
        output_path: Destination of the filled-in workbook.
        config: Application configuration.
        template_path: Template override; defaults to the configured one.
        pdf: Also render the workbook to ``output_path`` with ``.pdf``.
        camera: Treat every file as a phone photo.

    Returns:
        Summary dict with total, successful and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    recognizer = DocumentRecognizer(config)
    store = SessionStore()
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        logger.info("Processing [%d/%d]: %s", i, len(files), file_path.name)
        try:
            recognition = recognizer.recognize(
                file_path, file_path.name, "camera" if camera else "upload"
            )
        except OCRError as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            failed += 1
            continue
        fields = format_fields(extract_fields(recognition.text, config.extraction))
        store.append_document(_BATCH_SESSION, fields, file_path.name, recognition.confidence)
        successful += 1

    summary = {"total": len(files), "successful": successful, "failed": failed}
    if successful:
        service = ExportService.from_config(store, config)
        service.export_dir = output_path.parent
        exported = service.export_session(_BATCH_SESSION, template_path)
        exported.replace(output_path)
        logger.info("Workbook written to %s", output_path)
        if pdf:
            pdf_path = output_path.with_suffix(".pdf")
            service.pdf_converter.convert(output_path, pdf_path)

    _print_summary(summary, output_path)
    return summary


def _print_summary(summary: dict[str, int], output_path: Path) -> None:
    print(f"\n{'=' * 50}")
    print("DDT Batch Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_path}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="DDT digitizer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser("extract", help="Extract fields from one document")
    single_parser.add_argument("file", type=Path, help="Image or PDF of a DDT")
    single_parser.add_argument("--camera", action="store_true", help="File is a phone photo")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Export a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Directory with DDT images/PDFs")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("ddt_export.xlsx"),
        help="Output workbook (default: ddt_export.xlsx)",
    )
    batch_parser.add_argument("-t", "--template", type=Path, help="Template workbook")
    batch_parser.add_argument("--pdf", action="store_true", help="Also render a PDF")
    batch_parser.add_argument("--camera", action="store_true", help="Files are phone photos")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, config, args.camera)
        except OCRError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        try:
            process_folder(
                args.input_dir,
                args.output,
                config,
                template_path=args.template,
                pdf=args.pdf,
                camera=args.camera,
            )
        except (FileNotFoundError, TemplateWriteError, PdfConversionError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "serve":
        from ddt_digitizer.main import serve

        serve(args.host, args.port)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
