"""Helpers for grouping articles by theme and ordering them for display."""

from __future__ import annotations

from typing import Iterable

from newsletter_brief.models.schemas import Article, ThemeGroup, ThemeTaxonomy


def group_articles(articles: Iterable[Article], taxonomy: ThemeTaxonomy) -> list[ThemeGroup]:
    """Bucket by theme, newest first, in taxonomy order; empty themes are dropped."""
    buckets: dict[str, list[Article]] = {theme: [] for theme in taxonomy.themes}

    for article in articles:
        theme = article.theme if taxonomy.contains(article.theme) else taxonomy.default_theme
        buckets[theme].append(article)

    groups: list[ThemeGroup] = []
    for theme in taxonomy.themes:
        bucket = buckets[theme]
        if not bucket:
            continue
        bucket.sort(key=lambda article: article.timestamp, reverse=True)
        groups.append(ThemeGroup(theme=theme, articles=tuple(bucket)))
    return groups


def sort_articles_for_display(articles: Iterable[Article], taxonomy: ThemeTaxonomy) -> list[Article]:
    """Taxonomy order first, then newest first within a theme."""
    newest_first = sorted(articles, key=lambda article: article.timestamp, reverse=True)
    return sorted(newest_first, key=lambda article: taxonomy.priority(article.theme))


def count_label(count: int) -> str:
    return "1 newsletter" if count == 1 else f"{count} newsletters"
