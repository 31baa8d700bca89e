"""
Ranking of grouped results.

Order is strictly descending by count; equal counts are ordered by key
ascending so the same input always ranks the same way. Inputs are never
mutated.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping, Optional

from errors import ValidationError
from repositories.protocol import LinkDimensionCount
from schemas.models.link import Link
from schemas.models.report import (
    CountryBreakdown,
    CountryLinkEntry,
    DimensionBucket,
    TopEntity,
)


def _check_top_n(top_n: Optional[int]) -> None:
    if top_n is not None and top_n < 0:
        raise ValidationError("top_n must be zero or positive", field="top_n")


def rank(
    buckets: Iterable[DimensionBucket], top_n: Optional[int] = None
) -> list[DimensionBucket]:
    """Sort *buckets* by count desc, key asc; keep the first *top_n* if given."""
    _check_top_n(top_n)
    ordered = sorted(buckets, key=lambda b: (-b.count, b.key))
    if top_n is not None:
        ordered = ordered[:top_n]
    return ordered


def label_entity(link_id: str, clicks: int, link: Optional[Link]) -> TopEntity:
    if link is None:
        return TopEntity(entity_id=link_id, label=link_id, clicks=clicks)
    return TopEntity(
        entity_id=link_id,
        label=link.label,
        slug=link.slug,
        title=link.title,
        clicks=clicks,
    )


def rank_entities(
    per_link: Iterable[DimensionBucket],
    links: Mapping[str, Link],
    top_n: Optional[int] = None,
) -> list[TopEntity]:
    """Rank per-link totals (bucket key = link id) and attach slug/title labels."""
    return [
        label_entity(bucket.key, bucket.count, links.get(bucket.key))
        for bucket in rank(per_link, top_n)
    ]


def rank_with_breakdown(
    rows: Iterable[LinkDimensionCount],
    links: Mapping[str, Link],
    top_n: Optional[int] = None,
    per_key: Optional[int] = None,
) -> list[CountryBreakdown]:
    """Rank dimension keys by total, each with its own ranked top links."""
    _check_top_n(per_key)
    by_key: dict[str, list[DimensionBucket]] = defaultdict(list)
    for row in rows:
        by_key[row.key].append(DimensionBucket(key=row.link_id, count=row.count))

    totals = [
        DimensionBucket(key=key, count=sum(b.count for b in link_buckets))
        for key, link_buckets in by_key.items()
    ]

    result = []
    for total in rank(totals, top_n):
        entries = []
        for bucket in rank(by_key[total.key], per_key):
            link = links.get(bucket.key)
            entries.append(
                CountryLinkEntry(
                    link_id=bucket.key,
                    slug=link.slug if link else None,
                    title=link.title if link else None,
                    clicks=bucket.count,
                )
            )
        result.append(
            CountryBreakdown(country=total.key, total_clicks=total.count, links=entries)
        )
    return result
