"""Gmail mail source: thread search, latest-message parsing, mark-as-read."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from newsletter_brief.errors import ConfigurationError, MailSourceError
from newsletter_brief.models.schemas import CandidateMessage, MailQuery

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]
PERMALINK_TEMPLATE = "https://mail.google.com/mail/u/0/#all/{thread_id}"


def load_credentials(token_path: Path) -> Credentials:
    """Load a cached OAuth token, refreshing it when expired."""
    token_path = Path(token_path)
    if not token_path.exists():
        raise ConfigurationError(f"Gmail token not found: {token_path}")

    creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
    if creds.valid:
        return creds

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise ConfigurationError(f"Gmail token refresh failed: {exc}") from exc
        token_path.write_text(creds.to_json())
        return creds

    raise ConfigurationError(f"Gmail token at {token_path} is invalid and cannot be refreshed")


def build_gmail_service(creds: Credentials) -> Resource:
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


class GmailMailSource:
    """Reads the newest message of each thread matching the query."""

    def __init__(self, service: Resource, user_id: str = "me") -> None:
        self._service = service
        self._user_id = user_id

    def fetch(self, query: MailQuery) -> list[CandidateMessage]:
        search = query.to_search_string()
        logger.info(f"Searching emails: {search}")

        try:
            response = (
                self._service.users()
                .threads()
                .list(userId=self._user_id, q=search, maxResults=query.max_threads)
                .execute()
            )
            stubs = response.get("threads", [])[: query.max_threads]

            messages: list[CandidateMessage] = []
            for stub in stubs:
                thread = (
                    self._service.users()
                    .threads()
                    .get(userId=self._user_id, id=stub["id"], format="full")
                    .execute()
                )
                thread_messages = thread.get("messages", [])
                if not thread_messages:
                    continue
                messages.append(parse_gmail_message(thread_messages[-1]))
        except HttpError as exc:
            raise MailSourceError(f"Gmail search failed: {exc}") from exc

        logger.info(f"Found {len(messages)} threads")
        return messages

    def mark_read(self, message: CandidateMessage) -> None:
        try:
            (
                self._service.users()
                .threads()
                .modify(
                    userId=self._user_id,
                    id=message.thread_id,
                    body={"removeLabelIds": ["UNREAD"]},
                )
                .execute()
            )
        except HttpError as exc:
            raise MailSourceError(f"Failed to mark thread {message.thread_id} read: {exc}") from exc


def parse_gmail_message(raw: dict[str, Any]) -> CandidateMessage:
    """Convert a Gmail API message (format=full) into a CandidateMessage."""
    payload = raw.get("payload", {})
    headers = {
        h.get("name", "").lower(): h.get("value", "")
        for h in payload.get("headers", [])
    }
    plain_text, html = _walk_parts(payload)

    if plain_text is None and html is None:
        data = payload.get("body", {}).get("data")
        if data:
            decoded = _decode_body(data)
            if "html" in payload.get("mimeType", ""):
                html = decoded
            else:
                plain_text = decoded

    thread_id = raw.get("threadId", "")
    internal_ms = int(raw.get("internalDate", 0) or 0)

    return CandidateMessage(
        id=raw["id"],
        thread_id=thread_id,
        subject=headers.get("subject", "(no subject)"),
        sender=headers.get("from", ""),
        timestamp=datetime.fromtimestamp(internal_ms / 1000, tz=timezone.utc),
        plain_body=plain_text or "",
        html_body=html,
        permalink=PERMALINK_TEMPLATE.format(thread_id=thread_id) if thread_id else "",
    )


def _walk_parts(part: dict[str, Any]) -> tuple[str | None, str | None]:
    plain_text: str | None = None
    html: str | None = None
    mime_type = part.get("mimeType", "")

    if mime_type == "text/plain":
        data = part.get("body", {}).get("data")
        if data:
            plain_text = _decode_body(data)
    elif mime_type == "text/html":
        data = part.get("body", {}).get("data")
        if data:
            html = _decode_body(data)
    elif mime_type.startswith("multipart/"):
        for sub_part in part.get("parts", []):
            if sub_part.get("filename"):
                continue
            sub_plain, sub_html = _walk_parts(sub_part)
            if sub_plain and not plain_text:
                plain_text = sub_plain
            if sub_html and not html:
                html = sub_html

    return plain_text, html


def _decode_body(data: str) -> str:
    # Gmail bodies are base64url without padding
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
