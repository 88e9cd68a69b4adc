import tempfile

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Google Cloud Document AI
    google_cloud_project_id: str = ""
    google_cloud_location: str = "us"
    google_document_ai_ocr_processor_id: str = ""
    google_document_ai_form_processor_id: str = ""
    google_application_credentials: str = ""

    @field_validator("google_cloud_location", mode="before")
    @classmethod
    def normalize_location(cls, v: str) -> str:
        """Document AI endpoints are lowercase region names."""
        return v.strip().lower() if isinstance(v, str) else v

    # OCR result cache (keyed by content hash + processor id)
    ocr_cache_dir: str = ".cache"

    # Source file transport
    temp_dir: str = tempfile.gettempdir()
    storage_service_key: str = ""  # Bearer token for private storage URLs
    storage_public_path_marker: str = "/public/"
    http_timeout_seconds: float = 60.0

    # Layout heuristics (tuned against Bank of America / Chase statements)
    row_proximity_threshold: float = 0.02  # Normalized page height
    summary_table_min_hints: int = 2
    header_row_min_terms: int = 2
    transaction_header_min_keywords: int = 3

    # Redis (Celery broker)
    redis_url: str = "redis://localhost:6379/0"

    # HTTP surface
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def default_processor_id(self) -> str:
        """Form parser detects tables, so prefer it over plain OCR."""
        return self.google_document_ai_form_processor_id or self.google_document_ai_ocr_processor_id

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
