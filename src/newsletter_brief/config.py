"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from newsletter_brief.errors import ConfigurationError
from newsletter_brief.models.schemas import DEFAULT_TAXONOMY, MailQuery, ThemeTaxonomy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Configuration
    gemini_api_key: str = ""
    default_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.3
    llm_max_output_tokens: int = 4096
    llm_delay_seconds: float = 2.0  # Pause after each successful model call

    # Mail source
    mail_source: str = "gmail"  # "gmail" or "directory"
    mail_label: str = "Newsletters"
    mail_newer_than: str = "1d"
    mail_max_threads: int = 50
    mail_exclude_subjects: str = ""  # Comma-separated subject phrases
    mail_directory: str = "data/inbox"
    gmail_token_path: str = "credentials/token.json"

    # Processing thresholds
    max_content_length: int = 25000  # Max chars sent to the model
    min_content_length: int = 500  # Skip emails shorter than this
    min_summary_length: int = 20  # Skip summaries shorter than this

    # Storage
    state_path: str = "data/state.json"
    processed_ids_key: str = "PROCESSED_MESSAGE_IDS"
    max_stored_ids: int = 500

    # Output
    output_dir: str = "data/briefs"

    # Application
    debug: bool = False
    log_level: str = "INFO"


class BriefConfig(BaseModel):
    """Immutable run configuration handed to every pipeline component."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    model: str = "gemini-2.5-flash"
    temperature: float = 0.3
    max_output_tokens: int = 4096
    delay_seconds: float = 2.0
    taxonomy: ThemeTaxonomy = DEFAULT_TAXONOMY
    mail_query: MailQuery = MailQuery()
    max_content_length: int = 25000
    min_content_length: int = 500
    min_summary_length: int = 20
    processed_ids_key: str = "PROCESSED_MESSAGE_IDS"
    max_stored_ids: int = 500
    output_dir: Path = Path("data/briefs")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        taxonomy: ThemeTaxonomy = DEFAULT_TAXONOMY,
    ) -> BriefConfig:
        """Build the run configuration, failing before any message is touched."""
        if not settings.gemini_api_key.strip():
            raise ConfigurationError("GEMINI_API_KEY is not set.")
        if not taxonomy.themes:
            raise ConfigurationError("Theme taxonomy is empty.")

        return cls(
            api_key=settings.gemini_api_key.strip(),
            model=settings.default_model,
            temperature=settings.llm_temperature,
            max_output_tokens=settings.llm_max_output_tokens,
            delay_seconds=max(0.0, settings.llm_delay_seconds),
            taxonomy=taxonomy,
            mail_query=MailQuery(
                label=settings.mail_label,
                newer_than=settings.mail_newer_than,
                max_threads=settings.mail_max_threads,
                exclude_subjects=tuple(_split_phrases(settings.mail_exclude_subjects)),
            ),
            max_content_length=settings.max_content_length,
            min_content_length=settings.min_content_length,
            min_summary_length=settings.min_summary_length,
            processed_ids_key=settings.processed_ids_key,
            max_stored_ids=settings.max_stored_ids,
            output_dir=Path(settings.output_dir),
        )


def _split_phrases(value: str) -> list[str]:
    if not value:
        return []
    cleaned = value.replace(";", ",")
    return [phrase.strip() for phrase in cleaned.split(",") if phrase.strip()]


settings = Settings()
