"""Reset-window arithmetic for challenge cadences.

Resets are lazy: nothing rewrites progress rows at the boundary. Instead a
row whose ``last_updated`` predates the start of the current window is read
as zero progress. Every function here takes ``now`` explicitly so the
boundary logic can be tested without a clock.

Windows open at ``daily_reset_hour`` (06:00 by default) local time in the
reference zone; weekly windows open at that hour on ISO Monday. Seasonal
challenges never reset.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from petnet.config import get_settings


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite hands timestamps back without tzinfo)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def daily_reset_boundary(now: datetime, tz: ZoneInfo, hour: int) -> datetime:
    """Most recent ``hour:00`` in *tz* at or before *now*, as a UTC datetime."""
    local = ensure_utc(now).astimezone(tz)
    boundary = datetime.combine(local.date(), time(hour), tzinfo=tz)
    if local < boundary:
        boundary = datetime.combine(local.date() - timedelta(days=1), time(hour), tzinfo=tz)
    return boundary.astimezone(timezone.utc)


def weekly_reset_boundary(now: datetime, tz: ZoneInfo, hour: int) -> datetime:
    """Most recent Monday ``hour:00`` in *tz* at or before *now*, as a UTC datetime."""
    local = ensure_utc(now).astimezone(tz)
    monday = local.date() - timedelta(days=local.weekday())
    boundary = datetime.combine(monday, time(hour), tzinfo=tz)
    if local < boundary:
        boundary = datetime.combine(monday - timedelta(weeks=1), time(hour), tzinfo=tz)
    return boundary.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class ResetPolicy:
    tz: ZoneInfo
    hour: int = 6

    @classmethod
    def from_settings(cls) -> ResetPolicy:
        settings = get_settings()
        return cls(tz=ZoneInfo(settings.reset_timezone), hour=settings.daily_reset_hour)

    def period_start(self, cadence: str, now: datetime) -> datetime | None:
        """Start of the window containing *now*; None for cadences that never reset."""
        if cadence == "daily":
            return daily_reset_boundary(now, self.tz, self.hour)
        if cadence == "weekly":
            return weekly_reset_boundary(now, self.tz, self.hour)
        return None

    def period_end(self, cadence: str, now: datetime) -> datetime | None:
        """When the window containing *now* closes (the next reset), or None."""
        start = self.period_start(cadence, now)
        if start is None:
            return None
        days = 7 if cadence == "weekly" else 1
        # Step in local dates so the reset stays at the same wall-clock hour across DST.
        next_day = start.astimezone(self.tz).date() + timedelta(days=days)
        return datetime.combine(next_day, time(self.hour), tzinfo=self.tz).astimezone(timezone.utc)

    def needs_reset(self, cadence: str, last_updated: datetime | None, now: datetime) -> bool:
        """True if progress stamped at *last_updated* belongs to an earlier window."""
        if last_updated is None:
            return False
        start = self.period_start(cadence, now)
        return start is not None and ensure_utc(last_updated) < start

    def period_key(self, cadence: str, now: datetime) -> str:
        """Stable name of the window containing *now* (``2026-10-19``, ``2026-W43``, ``season``)."""
        start = self.period_start(cadence, now)
        if start is None:
            return "season"
        local_start = start.astimezone(self.tz)
        if cadence == "weekly":
            return local_start.strftime("%G-W%V")
        return local_start.date().isoformat()

    def share_day(self, now: datetime) -> date:
        """Calendar day in the reference zone (unique-recipient bookkeeping)."""
        return ensure_utc(now).astimezone(self.tz).date()
