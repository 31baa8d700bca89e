"""
Grouping dimensions of a click event.

Each dimension maps to the stored event field it groups on. Day is the only
temporal dimension; its key is the UTC calendar date of ``timestamp``.
"""

from __future__ import annotations

from enum import Enum

# Bucket key for events whose dimension value is null, missing or empty
UNKNOWN_BUCKET = "unknown"
# Bucket key for events without a referrer
DIRECT_REFERRER = "direct"


class Dimension(str, Enum):
    DAY = "day"
    COUNTRY = "country"
    CITY = "city"
    DEVICE = "device"
    BROWSER = "browser"
    OS = "os"
    REFERRER = "referrer"
    LINK = "link"

    @property
    def field(self) -> str:
        """Name of the ClickEvent attribute this dimension groups on."""
        return _FIELDS[self]

    @property
    def sentinel(self) -> str:
        return DIRECT_REFERRER if self is Dimension.REFERRER else UNKNOWN_BUCKET

    @property
    def is_temporal(self) -> bool:
        return self is Dimension.DAY

    @classmethod
    def parse(cls, value: str) -> "Dimension":
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(d.value for d in cls)
            raise ValueError(f"dimension must be one of: {allowed}") from None


_FIELDS = {
    Dimension.DAY: "timestamp",
    Dimension.COUNTRY: "country_code",
    Dimension.CITY: "city",
    Dimension.DEVICE: "device",
    Dimension.BROWSER: "browser",
    Dimension.OS: "os",
    Dimension.REFERRER: "referrer",
    Dimension.LINK: "link_id",
}

# Dimensions every StatisticsReport carries
REPORT_DIMENSIONS = (
    Dimension.DAY,
    Dimension.COUNTRY,
    Dimension.DEVICE,
    Dimension.BROWSER,
    Dimension.OS,
)
