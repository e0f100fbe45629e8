"""Eviction candidate selection.

Both selectors are pure: they take one consistently-ordered snapshot of a
feed's articles plus the protection set and return the identifiers that may
be deleted. Neither touches the store.
"""

from datetime import datetime, timedelta, timezone
from typing import AbstractSet, Iterable, Optional, Sequence
from uuid import UUID

from newsreel.article_cleanup.domain.article import ArticleSnapshot


def order_by_recency(articles: Iterable[ArticleSnapshot]) -> list[ArticleSnapshot]:
    """Most recent first, by effective date. Stable for equal dates."""
    return sorted(articles, key=lambda article: article.effective_date, reverse=True)


def select_over_capacity(
    articles: Sequence[ArticleSnapshot],
    limit: int,
    protected_ids: AbstractSet[UUID],
) -> list[UUID]:
    """Return unprotected articles beyond the ``limit`` most recent unprotected ones.

    Protected articles neither count toward the limit nor get selected.
    """
    if limit < 0:
        raise ValueError(f"Capacity limit must be non-negative, got {limit}")

    unprotected = [
        article for article in order_by_recency(articles) if article.id not in protected_ids
    ]
    if len(unprotected) <= limit:
        return []

    return [article.id for article in unprotected[limit:]]


def select_over_age(
    articles: Sequence[ArticleSnapshot],
    age_days: int,
    protected_ids: AbstractSet[UUID],
    now: Optional[datetime] = None,
) -> list[UUID]:
    """Return unprotected articles whose effective date is strictly before ``now - age_days``."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=age_days)

    return [
        article.id
        for article in order_by_recency(articles)
        if article.id not in protected_ids and article.effective_date < cutoff
    ]


def select_evictions(
    articles: Sequence[ArticleSnapshot],
    articles_per_feed: int,
    unread_age_days: int,
    protected_ids: AbstractSet[UUID],
    now: Optional[datetime] = None,
) -> list[UUID]:
    """Union of both strategies, deduplicated, in first-seen order."""
    over_capacity = select_over_capacity(articles, articles_per_feed, protected_ids)
    over_age = select_over_age(articles, unread_age_days, protected_ids, now=now)

    return list(dict.fromkeys([*over_capacity, *over_age]))
