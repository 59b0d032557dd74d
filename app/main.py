import argparse
import json
import mimetypes
import sys
from pathlib import Path

from app.config.settings import Settings
from app.extraction.profiles import DocumentType
from app.logging.logger import Log
from app.processor.processor import build_processor
from app.resilience.deadline import Deadline
from app.validation.models import UploadedFile

# mimetypes does not know webp on every platform
mimetypes.add_type("image/webp", ".webp")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m app.main",
        description="Extract structured expense data from an invoice or receipt.",
    )
    parser.add_argument("path", type=Path, help="PDF, JPEG, PNG or WebP file")
    parser.add_argument(
        "--type",
        dest="document_type",
        choices=[t.value for t in DocumentType],
        default=DocumentType.AUTO.value,
    )
    parser.add_argument("--timeout", type=float, default=None, help="deadline in seconds")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build processor -> extract one file -> print JSON."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level, stream=sys.stderr)

    mime_type, _ = mimetypes.guess_type(args.path.name)
    file = UploadedFile(
        content=args.path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
        original_name=args.path.name,
    )
    processor = build_processor(settings)
    deadline = Deadline(args.timeout) if args.timeout is not None else None
    try:
        result = processor.process(file, DocumentType(args.document_type), deadline)
    finally:
        processor.close()

    json.dump(result.to_payload(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
