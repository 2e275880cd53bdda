"""Subject-line filter for administrative and transactional mail."""

from __future__ import annotations

import re
from typing import Iterable, Pattern

NOISE_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"unsubscribe", re.IGNORECASE),
    re.compile(r"subscription (confirmed|updated|cancelled)", re.IGNORECASE),
    re.compile(r"preferences (updated|saved|changed)", re.IGNORECASE),
    re.compile(r"successfully (removed|unsubscribed)", re.IGNORECASE),
    re.compile(r"confirm your (email|subscription)", re.IGNORECASE),
    re.compile(r"welcome to .* newsletter", re.IGNORECASE),
    re.compile(r"you('ve| have) been (added|removed)", re.IGNORECASE),
    re.compile(r"manage your subscription", re.IGNORECASE),
)


def is_noise(subject: str, patterns: Iterable[Pattern[str]] = NOISE_PATTERNS) -> bool:
    """True when the subject looks like an admin email rather than a newsletter."""
    if not subject:
        return False
    return any(pattern.search(subject) for pattern in patterns)
