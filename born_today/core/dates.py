from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class FeedDate:
    """Calendar month/day as the feed expects them: two-digit, zero padded.

    Values are not range checked here; a malformed date is reported by the
    feed itself with a 400.
    """

    month: str
    day: str

    @classmethod
    def from_date(cls, value: date) -> FeedDate:
        return cls(month=f"{value.month:02d}", day=f"{value.day:02d}")

    @classmethod
    def today(cls) -> FeedDate:
        return cls.from_date(date.today())

    @classmethod
    def from_parts(cls, month: int | str, day: int | str) -> FeedDate:
        return cls(month=_pad(month), day=_pad(day))

    def __str__(self) -> str:
        return f"{self.month}/{self.day}"


def _pad(value: int | str) -> str:
    if isinstance(value, int):
        return f"{value:02d}"
    stripped = value.strip()
    return stripped.zfill(2) if stripped.isdigit() else stripped
