"""On-disk cache of raw OCR results, keyed by content hash and processor.

Entries never expire; deleting the file is the only invalidation. A processor
upgrade is therefore not picked up for documents already cached.
"""

import asyncio
import hashlib
import logging
from pathlib import Path

from google.cloud import documentai

logger = logging.getLogger(__name__)


def content_hash(content: bytes) -> str:
    """Stable identifier of a source file's bytes."""
    return hashlib.md5(content).hexdigest()


class OCRCache:
    """Stores Document AI responses as JSON files under one directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, document_hash: str, processor_id: str) -> Path:
        return self.directory / f"{document_hash}-{processor_id}.json"

    async def get(self, document_hash: str, processor_id: str) -> documentai.Document | None:
        """Load a cached document, or None on a miss or unreadable entry."""
        path = self.path_for(document_hash, processor_id)
        if not path.exists():
            return None

        loop = asyncio.get_event_loop()
        try:
            payload = await loop.run_in_executor(None, path.read_text, "utf-8")
            document = documentai.Document.from_json(payload, ignore_unknown_fields=True)
        except Exception as e:
            logger.warning(f"Cache read error for {path}, will process again: {e}")
            return None

        logger.info(f"Using cached OCR result {path} ({len(document.pages)} pages)")
        return document

    async def put(self, document_hash: str, processor_id: str, document: documentai.Document) -> bool:
        """Persist a document verbatim. Failure is logged and reported, never raised."""
        path = self.path_for(document_hash, processor_id)
        loop = asyncio.get_event_loop()
        try:
            payload = documentai.Document.to_json(document)
            await loop.run_in_executor(None, self._write, path, payload)
        except Exception as e:
            logger.warning(f"Failed to cache OCR result to {path}: {e}")
            return False

        logger.info(f"OCR result cached to {path}")
        return True

    def _write(self, path: Path, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
