"""Map free-text theme labels from the model onto the fixed taxonomy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from newsletter_brief.models.schemas import ThemeTaxonomy

logger = logging.getLogger(__name__)


@dataclass
class ThemeClassifier:
    """Exact match first, then first keyword contained in the label, then default.

    Keyword matching is substring based and follows table order, so a label
    containing "ai" anywhere resolves to the theme of the "ai" keyword even
    when a later keyword would also match.
    """

    taxonomy: ThemeTaxonomy
    _canonical: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._canonical = {theme.lower(): theme for theme in self.taxonomy.themes}

    def classify(self, label: str) -> str:
        normalized = (label or "").strip().lower()

        exact = self._canonical.get(normalized)
        if exact:
            return exact

        for keyword, theme in self.taxonomy.keywords:
            if keyword in normalized:
                logger.warning(f'Fuzzy matched theme "{label}" -> "{theme}" via keyword "{keyword}"')
                return theme

        logger.warning(f'No match for theme "{label}", using "{self.taxonomy.default_theme}"')
        return self.taxonomy.default_theme
