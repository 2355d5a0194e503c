"""Race, standings and weather records from the telemetry and weather APIs."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RaceRecord:
    """Next race session. date/time are display strings in the caller's timezone;
    date_start keeps the source ISO timestamp."""
    name: str
    location: Optional[str] = None
    country: Optional[str] = None
    circuit: Optional[str] = None
    circuit_type: Optional[str] = None  # "Permanent" | "Temporary - Street" | "Temporary - Road"
    date_start: Optional[str] = None
    meeting_key: Optional[int] = None
    session_key: Optional[int] = None
    country_flag_url: Optional[str] = None
    year: Optional[int] = None
    date: Optional[str] = None  # e.g. "Sunday, May 25, 2025"
    time: Optional[str] = None  # e.g. "3:00 PM GMT"


@dataclass(frozen=True)
class DriverStanding:
    position: int
    driver: str
    team: str
    points: int


@dataclass(frozen=True)
class TeamStanding:
    position: int
    team: str
    points: int


@dataclass(frozen=True)
class WeatherReport:
    """Current conditions at a location (metric units)."""
    location: str
    temperature: int
    description: str
    humidity: int
    wind_speed: int
