"""Pydantic settings models for the pipeline core."""

from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "chronos-pipeline"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class BlobStorageSettings(BaseModel):
    """Object storage holding uploaded video binaries (MinIO/S3)."""

    provider: Literal["minio", "s3"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    videos_bucket: str = "chronos-videos"
    presigned_url_expiry_seconds: int = 3600


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"
    chunks: str = "video_chunks"
    chat_sessions: str = "chat_sessions"


class DocumentDBSettings(BaseModel):
    """Artifact store settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "chronos"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class EmbeddingsSettings(BaseModel):
    """Query/chunk text embedding settings."""

    provider: Literal["openai", "azure_openai"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    batch_size: int = 100
    timeout_seconds: float = 30.0


class EventsSettings(BaseModel):
    """Durable event queue (Inngest-compatible event API)."""

    provider: Literal["http"] = "http"
    base_url: str = "http://localhost:8288"
    event_key: str = ""
    timeout_seconds: float = 10.0


class RecoverySettings(BaseModel):
    """Stuck-video sweep policy."""

    max_attempts: int = Field(default=3, ge=1)
    min_retry_interval_minutes: int = Field(default=60, ge=0)
    candidate_limit: int = Field(default=100, ge=1)
    concurrency: int = Field(default=10, ge=1)
    interval_minutes: int = Field(default=5, ge=1)

    @property
    def min_retry_interval(self) -> timedelta:
        return timedelta(minutes=self.min_retry_interval_minutes)


class StageSettings(BaseModel):
    """Per-stage timeout overrides in minutes.

    Unset stages use the state machine defaults.
    """

    timeout_overrides: dict[str, int] = Field(default_factory=dict)


class UploadSettings(BaseModel):
    """Chunked uploader settings."""

    large_file_threshold_bytes: int = Field(default=100 * 1024 * 1024, ge=1)
    chunk_size_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    timeout_seconds: float = 300.0


class RetrievalSettings(BaseModel):
    """Retrieval engine defaults."""

    default_k: int = Field(default=3, ge=1)
    similarity_threshold: float | None = Field(default=None, ge=-1, le=1)
    chat_model: str = "claude-3-5-haiku-20241022"


class TelemetrySettings(BaseModel):
    """Logging settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    embeddings: EmbeddingsSettings = Field(default_factory=EmbeddingsSettings)
    events: EventsSettings = Field(default_factory=EventsSettings)
    recovery: RecoverySettings = Field(default_factory=RecoverySettings)
    stages: StageSettings = Field(default_factory=StageSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHRONOS__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
