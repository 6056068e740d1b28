from __future__ import annotations

from dataclasses import dataclass, field

from .reference import ReferenceEntity

"""Config dataclasses for the bulk tabular import pipeline.

Every value here is immutable and injected where it is needed (layouts,
validator, submitter, gateways) instead of living in module-level mutable
defaults. The loader in tabular_import.config.loader builds these from YAML.
"""

DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y")


@dataclass(frozen=True)
class ApiConfig:
    """REST endpoint settings for the HTTP gateway.

    IMPORT_API_URL / IMPORT_API_TOKEN environment variables take precedence.
    """
    base_url: str | None = None
    token: str | None = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration for the PostgreSQL gateway.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class KindConfig:
    """Where records of one import kind are created and referenced."""
    create_endpoint: str | None = None  # POST target (HTTP gateway)
    reference_endpoint: str | None = None  # GET list of reference entities
    table: str | None = None  # INSERT target (PostgreSQL gateway)
    reference_table: str | None = None  # SELECT id, name source
    # dry-run 用の参照データ (API/DB 無しで検証する場合)
    reference_entities: tuple[ReferenceEntity, ...] = ()


@dataclass(frozen=True)
class SubmissionConfig:
    pause_seconds: float = 0.0  # 送信間の固定ウェイト (rate limit)


@dataclass(frozen=True)
class ValidationConfig:
    """Date acceptance window and accepted textual date formats."""
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    min_year: int = 1900
    max_years_ahead: int = 10


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    api: ApiConfig = field(default_factory=ApiConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    kinds: dict[str, KindConfig] = field(default_factory=dict)
    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logs_directory: str = "./logs"

    def kind(self, name: str) -> KindConfig:
        """Return the settings for ``name`` (empty settings when unconfigured)."""
        return self.kinds.get(name, KindConfig())
