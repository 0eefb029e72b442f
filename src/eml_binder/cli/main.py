"""
Command-line interface for decoding mail files and merging PDF attachments.

Usage:
    # Decode files to JSONL on stdout
    eml-binder parse inbox/a.eml inbox/b.msg

    # Decode a directory into a JSON file
    eml-binder parse inbox/ --output messages.json

    # Save every attachment into a directory
    eml-binder extract inbox/ --dir attachments/

    # Merge all PDF attachments into one document, then print it
    eml-binder merge inbox/ --output merged.pdf --print
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from eml_binder.config import settings
from eml_binder.errors import DecodeError, MergeEmptyError
from eml_binder.importer import UploadRegistry, import_files
from eml_binder.logging_config import setup_logging
from eml_binder.models.merge import ImportBatchResult
from eml_binder.pdf import (
    DirectoryDownloadSink,
    LprPrinter,
    PrintOutcome,
    download_attachment,
    download_merged,
    merge_pdf_attachments,
    print_pdf,
)

setup_logging()
logger = structlog.get_logger(__name__)

MAIL_PATTERNS = ("*.eml", "*.msg")


def collect_files(inputs: List[str]) -> List[Path]:
    """
    Expand input paths into mail files, keeping the given order.

    Directories are scanned recursively for .eml and .msg files, sorted by path.
    """
    files: List[Path] = []
    for raw in inputs:
        path = Path(raw)
        if path.is_dir():
            found = []
            for pattern in MAIL_PATTERNS:
                found.extend(path.glob(f"**/{pattern}"))
            files.extend(sorted(found))
        elif path.is_file():
            files.append(path)
        else:
            raise FileNotFoundError(f"Path not found: {path}")
    return files


def load_batch(inputs: List[str], pdf_only: bool = False) -> ImportBatchResult:
    """Read and decode every mail file named by ``inputs``."""
    payloads: List[Tuple[str, bytes]] = [
        (path.name, path.read_bytes()) for path in collect_files(inputs)
    ]
    if not payloads:
        logger.warning("No mail files found", inputs=inputs)

    result = import_files(payloads, registry=UploadRegistry(), pdf_only=pdf_only)

    for failure in result.failures:
        print(f"Skipped {failure.file_name}: {failure.error}", file=sys.stderr)
    for name in result.duplicates:
        print(f"Skipped duplicate {name}", file=sys.stderr)

    return result


def write_output(records: List[dict], output_path: Optional[Path], format: str = "jsonl") -> None:
    """
    Write records as JSON or JSONL to a file, or to stdout when no path is given.
    """
    if format == "jsonl":
        text = "".join(json.dumps(r, ensure_ascii=False) + "\n" for r in records)
    else:
        text = json.dumps(records, ensure_ascii=False, indent=2) + "\n"

    if output_path is None:
        sys.stdout.write(text)
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    logger.info("output_written", path=str(output_path), count=len(records))


def cmd_parse(args: argparse.Namespace) -> int:
    result = load_batch(args.inputs, pdf_only=args.pdf_only)

    records = []
    for message in result.messages:
        exclude = None if args.include_payload else {"attachments": {"__all__": {"payload"}}}
        records.append(message.model_dump(mode="json", exclude=exclude))

    output_path = Path(args.output) if args.output else None
    format = args.format
    if output_path and output_path.suffix == ".json":
        format = "json"

    write_output(records, output_path, format)
    return 0 if not result.failures else 2


def cmd_extract(args: argparse.Namespace) -> int:
    result = load_batch(args.inputs, pdf_only=args.pdf_only)
    sink = DirectoryDownloadSink(args.dir)

    errors = 0
    for message in result.messages:
        for attachment in message.attachments:
            try:
                download_attachment(attachment, sink)
            except DecodeError as e:
                errors += 1
                print(f"Could not decode {attachment.name}: {e.message}", file=sys.stderr)

    print(f"Wrote {len(sink.written)} attachment(s) to {sink.directory}", file=sys.stderr)
    return 0 if not errors else 2


def cmd_merge(args: argparse.Namespace) -> int:
    result = load_batch(args.inputs, pdf_only=True)
    attachments = [a for message in result.messages for a in message.pdf_attachments()]

    try:
        merged = merge_pdf_attachments(attachments)
    except MergeEmptyError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for failure in e.failures:
            print(f"  {failure.name}: {failure.reason}", file=sys.stderr)
        return 1

    output = Path(args.output)
    sink = DirectoryDownloadSink(str(output.parent), overwrite=True)
    download_merged(merged, sink, filename=output.name)

    print(
        f"Merged {merged.merged_count} of {len(attachments)} PDF(s), "
        f"{merged.page_count} page(s) into {sink.written[-1]}",
        file=sys.stderr,
    )
    for failure in merged.failures:
        print(f"  Skipped {failure.name}: {failure.reason}", file=sys.stderr)

    if args.print:
        outcome = print_pdf(merged.pdf_bytes, LprPrinter(args.printer_command))
        if outcome == PrintOutcome.FAILED:
            print("Printing failed", file=sys.stderr)
            return 1

    return 0 if not (merged.failures or result.failures) else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eml-binder",
        description="Decode .eml/.msg files, extract attachments and merge PDF attachments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log at DEBUG level to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Decode mail files to JSON")
    parse_cmd.add_argument("inputs", nargs="+", help="Mail files or directories")
    parse_cmd.add_argument("--output", "-o", default=None, help="Output file (default: stdout)")
    parse_cmd.add_argument(
        "--format", "-f", choices=["json", "jsonl"], default="jsonl",
        help="Output format (default: jsonl, .json output paths force json)",
    )
    parse_cmd.add_argument("--pdf-only", action="store_true", help="Keep only PDF attachments")
    parse_cmd.add_argument(
        "--include-payload", action="store_true", help="Include attachment payloads in output"
    )
    parse_cmd.set_defaults(handler=cmd_parse)

    extract_cmd = subparsers.add_parser("extract", help="Save attachments to a directory")
    extract_cmd.add_argument("inputs", nargs="+", help="Mail files or directories")
    extract_cmd.add_argument("--dir", "-d", default=settings.download_dir, help="Target directory")
    extract_cmd.add_argument("--pdf-only", action="store_true", help="Save only PDF attachments")
    extract_cmd.set_defaults(handler=cmd_extract)

    merge_cmd = subparsers.add_parser("merge", help="Merge all PDF attachments into one file")
    merge_cmd.add_argument("inputs", nargs="+", help="Mail files or directories")
    merge_cmd.add_argument(
        "--output", "-o", default=settings.merged_pdf_filename,
        help="Merged PDF path (an existing file is replaced)",
    )
    merge_cmd.add_argument(
        "--print", action="store_true", help="Send the merged PDF to the printer"
    )
    merge_cmd.add_argument(
        "--printer-command", default=None, help="Print command (default: settings.print_command)"
    )
    merge_cmd.set_defaults(handler=cmd_merge)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        setup_logging(log_level="DEBUG")

    try:
        return args.handler(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error("cli_failed", error=str(e), exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
