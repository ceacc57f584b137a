"""Partial date types for entity start/end dates.

A date always has a year; month and day are optional. A missing month or day
means "unknown precision", never "unbounded". Precision is carried explicitly
so ordering can apply the "missing sorts earliest" rule on purpose rather than
through zero-filled timestamps.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

# Supported year range (inclusive)
MIN_YEAR = -50000
MAX_YEAR = 10000

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


class DatePrecision(IntEnum):
    """How much of a PartialDate is known. Ordered coarse to fine."""

    YEAR = 1
    MONTH = 2
    DAY = 3


class PartialDate(BaseModel):
    """A calendar date with year, year+month, or full day precision."""

    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR, description="Year (negative for BCE)")
    month: int | None = Field(default=None, ge=1, le=12, description="Month (1-12)")
    day: int | None = Field(default=None, ge=1, le=31, description="Day (1-31)")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_precision_chain(self) -> PartialDate:
        if self.day is not None and self.month is None:
            raise ValueError("A date with a day must also have a month")
        return self

    @property
    def precision(self) -> DatePrecision:
        """The finest field that is set."""
        if self.day is not None:
            return DatePrecision.DAY
        if self.month is not None:
            return DatePrecision.MONTH
        return DatePrecision.YEAR

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """
        Key for chronological ordering where missing fields sort earliest.

        A year-only date sorts before any date in the same year with an
        explicit month, and a year+month date sorts before any date in that
        month with an explicit day.

        Returns:
            tuple[int, int, int]: ``(year, month_or_0, day_or_0)``.
        """
        return (self.year, self.month or 0, self.day or 0)

    def truncate(self, precision: DatePrecision) -> PartialDate:
        """Drop the fields finer than ``precision``.

        Args:
            precision: Target precision. A precision finer than this date's
                own precision leaves the date unchanged.

        Returns:
            A PartialDate no more precise than ``precision``.
        """
        if precision >= self.precision:
            return self
        if precision == DatePrecision.YEAR:
            return PartialDate(year=self.year)
        return PartialDate(year=self.year, month=self.month)

    def compare_at_shared_precision(self, other: PartialDate) -> int:
        """Compare two dates using only the fields both of them have.

        Args:
            other: Date to compare against.

        Returns:
            -1, 0 or 1 as this date is before, equal to, or after ``other``
            at their coarsest common precision.
        """
        shared = min(self.precision, other.precision)
        left = self.truncate(shared).sort_key
        right = other.truncate(shared).sort_key
        if left < right:
            return -1
        if left > right:
            return 1
        return 0

    def long_format(self) -> str:
        """Format as e.g. ``28 Jun 1914``, ``Jun 1914`` or ``1914``."""
        parts: list[str] = []
        if self.day is not None:
            parts.append(str(self.day))
        if self.month is not None:
            parts.append(MONTH_ABBREVIATIONS[self.month - 1])
        parts.append(str(self.year))
        return " ".join(parts)

    def short_format(self) -> str:
        """Format as ``dd / mm / yyyy`` with ``-`` for unknown fields."""
        day = str(self.day) if self.day is not None else "-"
        month = str(self.month) if self.month is not None else "-"
        return f"{day} / {month} / {self.year}"

    def __str__(self) -> str:
        if self.day is not None:
            return f"{self.year}-{self.month:02d}-{self.day:02d}"
        if self.month is not None:
            return f"{self.year}-{self.month:02d}"
        return str(self.year)


def parse_partial_date(text: str) -> PartialDate:
    """Parse ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD`` (leading ``-`` for BCE).

    Args:
        text: Date text.

    Returns:
        The parsed PartialDate.

    Raises:
        ValueError: If the text is not a supported date form or out of range.
    """
    raw = text.strip()
    negative = raw.startswith("-")
    body = raw[1:] if negative else raw
    pieces = body.split("-")
    if not body or len(pieces) > 3 or not all(p.isdigit() for p in pieces):
        raise ValueError(f"Invalid date: {text!r} (expected YYYY, YYYY-MM or YYYY-MM-DD)")

    year = int(pieces[0])
    if negative:
        year = -year
    month = int(pieces[1]) if len(pieces) > 1 else None
    day = int(pieces[2]) if len(pieces) > 2 else None
    logger.debug("Parsed date %r -> year=%s month=%s day=%s", text, year, month, day)
    return PartialDate(year=year, month=month, day=day)
