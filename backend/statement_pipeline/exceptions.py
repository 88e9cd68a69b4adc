"""Exception taxonomy for statement processing.

These never cross the pipeline's outer boundary: the loader, the parsers and
``process_uploaded_file`` convert them into ``False`` / ``None`` / failed results.
"""

import httpx
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions


class StatementProcessingError(Exception):
    """Base class for statement processing errors."""

    pass


class ConfigurationError(StatementProcessingError):
    """OCR processor credentials or identifiers are missing.

    Examples: no project ID, no processor ID, credentials file not found.
    """

    pass


class SourceFetchError(StatementProcessingError):
    """The source document could not be read or downloaded."""

    pass


class OCRServiceError(StatementProcessingError):
    """The OCR service was unreachable or returned no document."""

    pass


# Map external exceptions to our taxonomy
CONFIGURATION_ERRORS = (
    ConfigurationError,
    auth_exceptions.DefaultCredentialsError,
)

TRANSPORT_ERRORS = (
    httpx.HTTPError,
    ConnectionError,
    TimeoutError,
    OSError,
)

OCR_ERRORS = (
    google_exceptions.GoogleAPIError,
    OCRServiceError,
)
