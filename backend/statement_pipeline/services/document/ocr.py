"""Google Cloud Document AI client using the official SDK."""

import logging
from pathlib import Path

from google.api_core.client_options import ClientOptions
from google.cloud import documentai

from statement_pipeline.config import settings
from statement_pipeline.exceptions import ConfigurationError, OCRServiceError

logger = logging.getLogger(__name__)

_client: documentai.DocumentProcessorServiceAsyncClient | None = None


def processor_name(processor_id: str) -> str:
    """Fully qualified processor resource name."""
    if not settings.google_cloud_project_id or not settings.google_cloud_location or not processor_id:
        raise ConfigurationError(
            "Document AI configuration (project ID, location or processor ID) is missing"
        )
    return (
        f"projects/{settings.google_cloud_project_id}"
        f"/locations/{settings.google_cloud_location}"
        f"/processors/{processor_id}"
    )


def _credentials_path() -> Path:
    if not settings.google_application_credentials:
        raise ConfigurationError("GOOGLE_APPLICATION_CREDENTIALS is not configured")

    path = Path(settings.google_application_credentials)
    if not path.is_absolute():
        path = Path.cwd() / path
    if not path.exists():
        raise ConfigurationError(f"Credentials file not found at {path}")
    return path


def get_client() -> documentai.DocumentProcessorServiceAsyncClient:
    """Get or create the Document AI client."""
    global _client
    if _client is None:
        _client = documentai.DocumentProcessorServiceAsyncClient.from_service_account_file(
            str(_credentials_path()),
            client_options=ClientOptions(
                api_endpoint=f"{settings.google_cloud_location}-documentai.googleapis.com"
            ),
        )
    return _client


async def process_document(content: bytes, mime_type: str, processor_id: str) -> documentai.Document:
    """
    Run a whole document through a Document AI processor in a single call.

    Raises:
        ConfigurationError: project, location, processor or credentials missing
        OCRServiceError: the response carried no document
    """
    name = processor_name(processor_id)
    client = get_client()

    request = documentai.ProcessRequest(
        name=name,
        raw_document=documentai.RawDocument(content=content, mime_type=mime_type),
    )

    logger.info(f"Sending {len(content)} bytes to Document AI processor {name}")
    result = await client.process_document(request=request)

    if not result.document or not result.document.pages:
        raise OCRServiceError("No document returned from Document AI")

    return result.document


async def close_client() -> None:
    """Close the client's transport."""
    global _client
    if _client is not None:
        await _client.transport.close()
        _client = None
