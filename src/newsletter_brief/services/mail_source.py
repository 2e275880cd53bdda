"""Mail collaborator interface and an offline directory-backed source."""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Protocol

from pydantic import ValidationError

from newsletter_brief.errors import MailSourceError
from newsletter_brief.models.schemas import CandidateMessage, MailQuery

logger = logging.getLogger(__name__)

_WINDOW = re.compile(r"^\s*(\d+)\s*([hdmwy])\s*$", re.IGNORECASE)
_WINDOW_UNITS = {"h": 1 / 24, "d": 1, "w": 7, "m": 30, "y": 365}


class MailSource(Protocol):
    """Yields candidate messages for a query and marks handled threads read."""

    def fetch(self, query: MailQuery) -> list[CandidateMessage]: ...

    def mark_read(self, message: CandidateMessage) -> None: ...


def parse_window(value: str) -> timedelta | None:
    """Gmail-style relative window ("12h", "1d", "2w") as a timedelta."""
    match = _WINDOW.match(value or "")
    if not match:
        return None
    amount, unit = int(match.group(1)), match.group(2).lower()
    return timedelta(days=amount * _WINDOW_UNITS[unit])


class DirectoryMailSource:
    """Reads exported messages (one JSON file per message) from a directory.

    Marking a message read moves its file into a ``read/`` subdirectory.
    """

    def __init__(self, directory: Path, clock: Callable[[], datetime] | None = None) -> None:
        self.directory = Path(directory)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._files: dict[str, Path] = {}

    def fetch(self, query: MailQuery) -> list[CandidateMessage]:
        if not self.directory.is_dir():
            raise MailSourceError(f"Mail directory not found: {self.directory}")

        window = parse_window(query.newer_than)
        cutoff = self._clock() - window if window else None
        excluded = [phrase.lower() for phrase in query.exclude_subjects]

        messages: list[CandidateMessage] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                message = CandidateMessage.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as exc:
                logger.warning(f"Skipping unreadable message file {path.name}: {exc}")
                continue

            if cutoff and message.timestamp < cutoff:
                continue
            if any(phrase in message.subject.lower() for phrase in excluded):
                continue

            self._files[message.id] = path
            messages.append(message)

        messages.sort(key=lambda message: message.timestamp, reverse=True)
        return messages[: query.max_threads]

    def mark_read(self, message: CandidateMessage) -> None:
        path = self._files.pop(message.id, None)
        if path is None or not path.exists():
            return
        read_dir = self.directory / "read"
        read_dir.mkdir(exist_ok=True)
        shutil.move(str(path), str(read_dir / path.name))
