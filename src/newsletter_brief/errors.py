"""Exceptions raised across the newsletter brief pipeline."""


class NewsletterBriefError(Exception):
    """Base exception for all newsletter brief errors."""


class ConfigurationError(NewsletterBriefError):
    """Required run-level configuration is missing or invalid."""


class LLMError(NewsletterBriefError):
    """A language-model call did not produce usable text."""


class TransportError(LLMError):
    """The model API returned an error or could not be reached."""


class SafetyBlockedError(LLMError):
    """The model refused to answer because of its safety filters."""


class EmptyResponseError(LLMError):
    """The model answered without any text content."""


class PersistenceCorruptError(NewsletterBriefError):
    """A persisted payload could not be decoded."""


class MailSourceError(NewsletterBriefError):
    """The mail collaborator failed to list, fetch or update messages."""
