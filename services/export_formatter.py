"""
Export rendering of a StatisticsReport.

Two encodings:

- csv:  ``#`` metadata lines, then one block per rollup
        (``## Section`` line, column header, rows) separated by blank lines.
        Label columns (country, browser, OS, referrer, title) are always
        double-quoted; counts are bare.
- json: ``linkInfo`` / ``exportInfo`` / ``statistics`` for a single link,
        ``exportInfo`` / ``statistics`` for a portfolio, indented by 2.

Rendering is deterministic: the same report and metadata always give the
same bytes. Public-audience renders drop referrers and every entity
identifier other than slug/title.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from errors import UnsupportedFormatError
from schemas.models.link import Link
from schemas.models.report import DimensionBucket, StatisticsReport
from services.scope import Audience, Scope
from shared.datetime_utils import DateRange
from shared.dimensions import Dimension


class ExportEncoding(str, Enum):
    CSV = "csv"
    JSON = "json"

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "ExportEncoding":
        raw = (value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(e.value for e in cls)
            raise UnsupportedFormatError(
                f"format must be one of: {allowed}",
                field="format",
                details={"format": value},
            ) from None


MEDIA_TYPES = {
    ExportEncoding.CSV: "text/csv; charset=utf-8",
    ExportEncoding.JSON: "application/json",
}

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


@dataclass(frozen=True)
class ExportMetadata:
    """Everything the export header needs besides the report itself."""

    report_kind: str
    entity_label: str
    entity_slug: str
    generated_at: datetime
    date_range: DateRange
    audience: Audience = Audience.OWNER
    link: Optional[Link] = None
    total_links: Optional[int] = None

    @classmethod
    def for_scope(
        cls,
        scope: Scope,
        date_range: Optional[DateRange],
        generated_at: datetime,
        audience: Optional[Audience] = None,
    ) -> "ExportMetadata":
        return cls(
            report_kind="analytics",
            entity_label=scope.entity_label,
            entity_slug=scope.entity_slug,
            generated_at=generated_at,
            date_range=date_range or DateRange(),
            audience=audience or scope.audience,
            link=scope.primary,
            total_links=len(scope.links) if scope.multi_link else None,
        )


def build_export_filename(metadata: ExportMetadata, encoding: ExportEncoding) -> str:
    """``{reportKind}_{slugOrGlobal}_{yyyy-MM-dd_HH-mm-ss}.{ext}``"""
    stamp = metadata.generated_at.strftime(TIMESTAMP_FORMAT)
    return f"{metadata.report_kind}_{metadata.entity_slug}_{stamp}.{encoding.value}"


def redact_for_audience(
    report: StatisticsReport, audience: Audience
) -> StatisticsReport:
    """Strip owner-only data from a report rendered for the public."""
    if audience is Audience.OWNER:
        return report
    return report.model_copy(update={"clicks_by_referrer": None, "top_entities": None})


def format_report(
    report: StatisticsReport,
    encoding: ExportEncoding,
    metadata: ExportMetadata,
) -> str:
    report = redact_for_audience(report, metadata.audience)
    if encoding is ExportEncoding.CSV:
        return render_csv(report, metadata)
    return render_json(report, metadata)


# ── CSV ──────────────────────────────────────────────────────────────────────

# (section title, column headers, rollup, quote the key column)
_CSV_SECTIONS = (
    ("Clicks by Day", ("Date", "Clicks"), Dimension.DAY, False),
    ("Clicks by Country", ("Country", "Clicks"), Dimension.COUNTRY, True),
    ("Clicks by Device", ("Device", "Clicks"), Dimension.DEVICE, False),
    ("Clicks by Browser", ("Browser", "Clicks"), Dimension.BROWSER, True),
    ("Clicks by Operating System", ("OS", "Clicks"), Dimension.OS, True),
    ("Clicks by Referrer", ("Referrer", "Clicks"), Dimension.REFERRER, True),
)


def _writer(buf: io.StringIO, quote_labels: bool) -> Any:
    # QUOTE_NONNUMERIC wraps every string and leaves the int counts bare
    return csv.writer(
        buf,
        quoting=csv.QUOTE_NONNUMERIC if quote_labels else csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )


def _csv_block(
    title: str,
    headers: tuple[str, ...],
    rows: list[list[Any]],
    quote_labels: bool,
) -> str:
    buf = io.StringIO()
    buf.write(f"## {title}\n")
    _writer(buf, False).writerow(headers)
    _writer(buf, quote_labels).writerows(rows)
    return buf.getvalue()


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


def _bucket_rows(buckets: list[DimensionBucket]) -> list[list[Any]]:
    return [[bucket.key, bucket.count] for bucket in buckets]


def render_csv(report: StatisticsReport, metadata: ExportMetadata) -> str:
    header = [
        "# Analytics Export",
        f"# Link: {_single_line(metadata.entity_label)}",
        f"# Date Range: {metadata.date_range.describe()}",
        f"# Exported at: {metadata.generated_at.isoformat()}",
        f"# Total Clicks: {report.total_clicks}",
        f"# Unique Visitors: {report.total_unique_visitors}",
    ]
    if metadata.total_links is not None:
        header.append(f"# Total Links: {metadata.total_links}")

    blocks = ["\n".join(header) + "\n"]

    if report.top_entities:
        rows = [[e.slug or "", e.title or "", e.clicks] for e in report.top_entities]
        blocks.append(
            _csv_block("Top Performing Links", ("Slug", "Title", "Clicks"), rows, True)
        )

    for title, headers, dimension, quote_labels in _CSV_SECTIONS:
        buckets = report.rollup(dimension)
        if buckets is None:
            continue
        blocks.append(_csv_block(title, headers, _bucket_rows(buckets), quote_labels))

    return "\n".join(blocks)


# ── JSON ─────────────────────────────────────────────────────────────────────


def _link_info(link: Link, audience: Audience) -> dict[str, Any]:
    info: dict[str, Any] = {"slug": link.slug, "title": link.title}
    if audience is Audience.OWNER:
        info["id"] = link.id
        info["createdAt"] = link.created_at.isoformat() if link.created_at else None
    return info


def _export_info(metadata: ExportMetadata) -> dict[str, Any]:
    date_range = metadata.date_range
    info: dict[str, Any] = {
        "exportedAt": metadata.generated_at.isoformat(),
        "dateRange": {
            "startDate": date_range.start.isoformat() if date_range.start else None,
            "endDate": date_range.end.isoformat() if date_range.end else None,
        },
        "description": date_range.describe(),
    }
    if metadata.total_links is not None:
        info["type"] = "global"
        info["totalLinks"] = metadata.total_links
    return info


def render_json(report: StatisticsReport, metadata: ExportMetadata) -> str:
    document: dict[str, Any] = {}
    if metadata.link is not None:
        document["linkInfo"] = _link_info(metadata.link, metadata.audience)
    document["exportInfo"] = _export_info(metadata)
    document["statistics"] = report.model_dump(
        mode="json", by_alias=True, exclude_none=True
    )
    return json.dumps(document, indent=2, ensure_ascii=False)
