"""Main entry point for the newsletter brief application."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import structlog

from newsletter_brief.config import BriefConfig, Settings, settings
from newsletter_brief.errors import ConfigurationError, NewsletterBriefError
from newsletter_brief.services.gemini import GeminiClient
from newsletter_brief.services.mail_source import DirectoryMailSource, MailSource
from newsletter_brief.storage.kv_store import JsonFileStore
from newsletter_brief.workflow import BriefPipeline, run_brief

logger = structlog.get_logger()


def _resolve_log_level(level_name: str) -> int:
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging(level_name: str) -> None:
    logging.basicConfig(level=_resolve_log_level(level_name))

    # Suppress verbose Google SDK, Gmail discovery and httpx logging
    logging.getLogger("google_genai.models").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_mail_source(app_settings: Settings) -> MailSource:
    """Pick the mail collaborator named by MAIL_SOURCE."""
    source = app_settings.mail_source.strip().lower()
    if source == "directory":
        return DirectoryMailSource(Path(app_settings.mail_directory))
    if source == "gmail":
        # Imported lazily so directory runs work without Gmail credentials
        from newsletter_brief.services.gmail_source import (
            GmailMailSource,
            build_gmail_service,
            load_credentials,
        )

        creds = load_credentials(Path(app_settings.gmail_token_path))
        return GmailMailSource(build_gmail_service(creds))
    raise ConfigurationError(f"Unknown MAIL_SOURCE: {app_settings.mail_source!r}")


def build_pipeline(
    app_settings: Settings,
    *,
    dry_run: bool = False,
    no_delay: bool = False,
    output: Path | None = None,
) -> BriefPipeline:
    config = BriefConfig.from_settings(app_settings)
    if no_delay:
        config = config.model_copy(update={"delay_seconds": 0.0})

    return BriefPipeline(
        config=config,
        mail_source=build_mail_source(app_settings),
        llm=GeminiClient(api_key=config.api_key, model=config.model),
        store=JsonFileStore(Path(app_settings.state_path)),
        output_path=output,
        dry_run=dry_run,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Daily newsletter intelligence brief")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the brief but do not record processed IDs or mark threads read",
    )
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Skip the pause between model calls",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the brief here instead of OUTPUT_DIR/brief_<date>.docx",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    logger.info("Newsletter brief starting", debug=settings.debug, dry_run=args.dry_run)

    try:
        pipeline = build_pipeline(
            settings,
            dry_run=args.dry_run,
            no_delay=args.no_delay,
            output=args.output,
        )
    except ConfigurationError as exc:
        logger.error("Configuration error", error=str(exc))
        return 2

    try:
        result = run_brief(pipeline)
    except NewsletterBriefError as exc:
        logger.error("Brief run failed", error=str(exc))
        return 1

    logger.info(
        "Brief generation complete",
        articles=len(result.articles),
        themes=len(result.themes),
        recorded=len(result.recorded_ids),
        errors=result.errors,
        output_path=str(result.output_path) if result.output_path else None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
