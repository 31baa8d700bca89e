"""
Narrative summary of a portfolio report.

The summary is built as structured sections first and only then joined into
text, so the wording can change without touching the figures.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from schemas.models.report import StatisticsReport, SummaryStats
from services.ranking import rank

TOP_LINKS = 5
TOP_BUCKETS = 3

# Average clicks per link below which performance counts as low / solid
LOW_AVG_CLICKS = 10
SOLID_AVG_CLICKS = 50
MOBILE_SHARE = 0.7


@dataclass
class NarrativeSection:
    title: str
    lines: list[str] = field(default_factory=list)

    def render(self) -> str:
        body = "\n".join(f"- {line}" for line in self.lines)
        return f"**{self.title}**\n{body}"


@dataclass
class Narrative:
    heading: str
    sections: list[NarrativeSection]
    stats: SummaryStats

    def render(self) -> str:
        parts = [f"**{self.heading}**"]
        parts.extend(section.render() for section in self.sections)
        return "\n\n".join(parts) + "\n"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summary_stats(report: StatisticsReport, total_links: int) -> SummaryStats:
    avg = _round_half_up(report.total_clicks / total_links) if total_links else 0
    top_links = [e for e in report.top_entities or [] if e.clicks > 0][:TOP_LINKS]
    return SummaryStats(
        total_links=total_links,
        total_clicks=report.total_clicks,
        avg_clicks_per_link=avg,
        top_links=top_links,
        top_countries=rank(report.clicks_by_country, TOP_BUCKETS),
        top_devices=rank(report.clicks_by_device, TOP_BUCKETS),
        top_browsers=rank(report.clicks_by_browser, TOP_BUCKETS),
    )


def _recommendations(stats: SummaryStats) -> NarrativeSection:
    section = NarrativeSection("Recommendations")
    best = stats.top_links[0].label if stats.top_links else None
    avg = stats.avg_clicks_per_link

    if avg < LOW_AVG_CLICKS:
        section.lines.append(
            "Consider sharper titles and descriptions to lift engagement"
        )
        section.lines.append("Share your links on more platforms to grow visibility")
    elif avg < SOLID_AVG_CLICKS:
        section.lines.append("Good work: your links are performing solidly")
        if best:
            section.lines.append(
                f'Look at what makes "{best}" succeed and apply it to other links'
            )
    else:
        section.lines.append("Excellent performance: your links drive strong engagement")
        section.lines.append("Consider creating more content like your top links")

    if len(stats.top_countries) > 2:
        section.lines.append(
            "Your audience is international; consider region-specific content"
        )

    top_device = stats.top_devices[0] if stats.top_devices else None
    if (
        top_device is not None
        and top_device.key == "mobile"
        and top_device.count > stats.total_clicks * MOBILE_SHARE
    ):
        section.lines.append(
            "Most of your audience is on mobile; make sure landing pages are mobile-friendly"
        )
    return section


def build_narrative(
    report: StatisticsReport, total_links: int, days: int
) -> Narrative:
    stats = summary_stats(report, total_links)
    sections = [
        NarrativeSection(
            "Overall performance",
            [
                f"You have {stats.total_links} active links with "
                f"{stats.total_clicks:,} clicks in total",
                f"Average of {stats.avg_clicks_per_link} clicks per link",
            ],
        )
    ]

    if stats.top_links:
        best = stats.top_links[0]
        section = NarrativeSection(
            "Best performer",
            [f'Your most successful link is "{best.label}" with {best.clicks} clicks'],
        )
        others = stats.top_links[1:3]
        if others:
            section.lines.append(
                "Other standouts: "
                + ", ".join(f'"{e.label}" ({e.clicks})' for e in others)
            )
        sections.append(section)

    if stats.top_countries:
        first, rest = stats.top_countries[0], stats.top_countries[1:]
        section = NarrativeSection(
            "Geographic reach",
            [f"Your main audience is in {first.key} ({first.count} clicks)"],
        )
        if rest:
            section.lines.append(
                "Also present in: " + ", ".join(f"{b.key} ({b.count})" for b in rest)
            )
        sections.append(section)

    if stats.top_devices:
        device = stats.top_devices[0]
        section = NarrativeSection(
            "Technical preferences",
            [f"Most visitors use {device.key} devices ({device.count} clicks)"],
        )
        if stats.top_browsers:
            browser = stats.top_browsers[0]
            section.lines.append(
                f"Most used browser: {browser.key} ({browser.count} clicks)"
            )
        sections.append(section)

    sections.append(_recommendations(stats))
    return Narrative(
        heading=f"Analytics summary (last {days} days)",
        sections=sections,
        stats=stats,
    )


def summarize(report: StatisticsReport, total_links: int, days: int) -> str:
    return build_narrative(report, total_links, days).render()
