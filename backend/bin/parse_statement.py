#!/usr/bin/env python3
"""Parse a bank statement and print the extracted data as JSON.

Usage:
    bin/parse_statement.py statement.pdf                  # Full extraction
    bin/parse_statement.py statement.pdf --summary        # Condensed summary
    bin/parse_statement.py https://host/file.pdf          # Fetch, parse, clean up
    bin/parse_statement.py scan.png --mime-type image/png
    bin/parse_statement.py statement.pdf --processor-id <id>
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from statement_pipeline.services.document import ocr  # noqa: E402
from statement_pipeline.services.statements import process_uploaded_file  # noqa: E402


async def run(source: str, mime_type: str, processor_id: str | None, summary: bool) -> int:
    try:
        result = await process_uploaded_file(source, mime_type, processor_id)
    finally:
        await ocr.close_client()

    if not result.success:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return 1

    output = result.data.summary() if summary else result.data.to_dict()
    print(json.dumps(output, indent=2))

    missing = result.data.missing_fields()
    if missing:
        print(f"WARNING: missing {', '.join(missing)}", file=sys.stderr)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse a bank statement with Document AI")
    parser.add_argument("source", help="Local file path or http(s) URL")
    parser.add_argument("--mime-type", default="application/pdf", help="Source MIME type")
    parser.add_argument("--processor-id", help="Document AI processor (defaults to form, then OCR)")
    parser.add_argument("--summary", action="store_true", help="Print the condensed summary")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(run(args.source, args.mime_type, args.processor_id, args.summary)))


if __name__ == "__main__":
    main()
