"""Render race start times in the caller's timezone."""
import logging
from dataclasses import replace
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gridcard.models.race import RaceRecord

logger = logging.getLogger(__name__)


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def resolve_zone(tz_name: str) -> ZoneInfo:
    """ZoneInfo for tz_name, or UTC if the name is unknown."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.info("Unknown timezone %r, using UTC", tz_name)
        return ZoneInfo("UTC")


def format_date(dt: datetime) -> str:
    """e.g. 'Sunday, May 25, 2025'."""
    return f"{dt:%A}, {dt:%B} {dt.day}, {dt.year}"


def format_time(dt: datetime) -> str:
    """e.g. '3:00 PM BST'."""
    hour = dt.hour % 12 or 12
    label = f"{hour}:{dt:%M} {'AM' if dt.hour < 12 else 'PM'}"
    zone = dt.tzname()
    return f"{label} {zone}" if zone else label


def localize_race(race: RaceRecord, tz_name: str) -> RaceRecord:
    """Copy of race with date/time rendered in tz_name. date_start is left untouched."""
    if not race.date_start:
        return race
    try:
        start = parse_iso(race.date_start)
    except ValueError:
        logger.info("Unparseable race start %r", race.date_start)
        return race
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    local = start.astimezone(resolve_zone(tz_name))
    return replace(race, date=format_date(local), time=format_time(local))
