"""Resolve a statement source (local path or URL) to a readable local file."""

import asyncio
import logging
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx

from statement_pipeline.config import settings
from statement_pipeline.exceptions import SourceFetchError

logger = logging.getLogger(__name__)

DUPLICATE_SLASHES = re.compile(r"([^:]/)/+")


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def clean_url(url: str) -> str:
    """Collapse duplicate slashes outside the scheme separator."""
    return DUPLICATE_SLASHES.sub(r"\1", url)


def auth_headers(url: str) -> dict[str, str]:
    """Bearer auth for private storage URLs when a service key is configured."""
    if settings.storage_service_key and settings.storage_public_path_marker not in url:
        return {"Authorization": f"Bearer {settings.storage_service_key}"}
    return {}


def temp_suffix(mime_type: str) -> str:
    """File extension for a MIME type, e.g. application/pdf -> .pdf."""
    _, _, subtype = mime_type.partition("/")
    return f".{subtype or 'file'}"


async def download(url: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Fetch a remote source. Raises SourceFetchError on non-2xx or network failure."""
    target = clean_url(url)
    logger.info(f"Fetching URL: {target}")

    try:
        if client is not None:
            response = await client.get(target, headers=auth_headers(target))
        else:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as session:
                response = await session.get(target, headers=auth_headers(target))
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SourceFetchError(
            f"Failed to fetch file: {e.response.reason_phrase} ({e.response.status_code})"
        ) from e
    except httpx.HTTPError as e:
        raise SourceFetchError(f"Failed to fetch file from URL: {e}") from e

    logger.info(f"Successfully downloaded file: {len(response.content)} bytes")
    return response.content


@asynccontextmanager
async def local_source(
    source: str, mime_type: str, client: httpx.AsyncClient | None = None
) -> AsyncIterator[str]:
    """
    Yield a local path for the source.

    URLs are downloaded into a temporary file that is always removed on exit,
    whether or not processing succeeded. Local paths must exist.
    """
    if not is_url(source):
        if not Path(source).is_file():
            raise SourceFetchError(f"File not found or not accessible: {source}")
        yield source
        return

    content = await download(source, client)

    temp_path = Path(settings.temp_dir) / f"temp-statement-{uuid.uuid4().hex}{temp_suffix(mime_type)}"
    loop = asyncio.get_event_loop()
    try:
        await loop.run_in_executor(None, temp_path.write_bytes, content)
    except OSError as e:
        raise SourceFetchError(f"Failed to write temporary file {temp_path}: {e}") from e

    logger.info(f"Created temporary file for processing: {temp_path}")
    try:
        yield str(temp_path)
    finally:
        try:
            temp_path.unlink(missing_ok=True)
            logger.info(f"Deleted temporary file: {temp_path}")
        except OSError as e:
            logger.warning(f"Failed to delete temporary file {temp_path}: {e}")
