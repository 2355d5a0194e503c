"""OpenF1 telemetry API: next race and top-5 standings, degrading to mock data on failure.

OpenF1 allows 3 requests/sec; sequential calls share one Throttle. There is no
retry: a failed read returns the documented mock record instead.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from gridcard.config import (
    DEFAULT_TIMEZONE,
    FETCH_TIMEOUT_SEC,
    OPENF1_API_BASE,
    OPENF1_MIN_INTERVAL_SEC,
)
from gridcard.core.errors import UpstreamError
from gridcard.core.http import Throttle, send_json
from gridcard.core.timefmt import localize_race
from gridcard.models.race import DriverStanding, RaceRecord, TeamStanding

logger = logging.getLogger(__name__)

# Returned when the API is unavailable
MOCK_RACE = RaceRecord(
    name="Australian Grand Prix",
    location="Melbourne",
    country="Australia",
    circuit="Albert Park Circuit",
    circuit_type="Temporary - Road",
    year=2024,
    date="Sunday, March 24, 2024",
    time="3:00 PM AEDT",
)
MOCK_DRIVERS = [
    DriverStanding(1, "Max Verstappen", "Red Bull Racing", 575),
    DriverStanding(2, "Sergio Perez", "Red Bull Racing", 285),
    DriverStanding(3, "Lewis Hamilton", "Mercedes", 234),
    DriverStanding(4, "Fernando Alonso", "Aston Martin", 206),
    DriverStanding(5, "Carlos Sainz", "Ferrari", 200),
]
MOCK_TEAMS = [
    TeamStanding(1, "Red Bull Racing", 860),
    TeamStanding(2, "Mercedes", 409),
    TeamStanding(3, "Ferrari", 406),
    TeamStanding(4, "McLaren", 302),
    TeamStanding(5, "Aston Martin", 280),
]

TOP_N = 5

# Malformed payloads degrade the same way as HTTP failures
_READ_ERRORS = (UpstreamError, LookupError, TypeError, ValueError)


def standings_year(now: datetime) -> int:
    """Season whose standings to report: in January and February the previous season is final."""
    return now.year - 1 if now.month < 3 else now.year


def estimated_driver_points(position: int) -> int:
    # OpenF1 has no championship table; points are estimated from finishing position
    return max(500 - (position - 1) * 50, 0)


def race_from_session(session: Dict[str, Any], meeting: Optional[Dict[str, Any]] = None) -> RaceRecord:
    """Map an OpenF1 session (and optionally its meeting) to a RaceRecord."""
    meeting = meeting or {}
    return RaceRecord(
        name=meeting.get("meeting_name") or session.get("location") or "Formula 1 Race",
        location=session.get("location") or session.get("country_name"),
        country=session.get("country_name") or meeting.get("country_name"),
        circuit=session.get("circuit_short_name") or meeting.get("circuit_short_name"),
        circuit_type=meeting.get("circuit_type"),
        date_start=session.get("date_start"),
        meeting_key=session.get("meeting_key"),
        session_key=session.get("session_key"),
        country_flag_url=meeting.get("country_flag"),
        year=session.get("year"),
    )


class F1Client:
    """Reads from OpenF1. Every public getter returns real data or its mock, never raises."""

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = OPENF1_API_BASE,
        timeout: float = FETCH_TIMEOUT_SEC,
        throttle: Optional[Throttle] = None,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.throttle = throttle or Throttle(OPENF1_MIN_INTERVAL_SEC)

    def fetch(self, path: str, query: str = "") -> List[Dict[str, Any]]:
        """One throttled GET. The query string is passed through as-is (OpenF1 uses
        operators like date_start>=2025-01-01 that must not be percent-encoded)."""
        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{query}"
        self.throttle.wait()
        try:
            data = send_json(self.session, "GET", url, timeout=self.timeout)
        except UpstreamError as e:
            # OpenF1 answers an empty filter result with 404
            if e.status == 404:
                return []
            raise
        if not isinstance(data, list):
            raise UpstreamError(f"Unexpected payload from {url}", url=url)
        return data

    def _race_sessions(self, query: str) -> List[Dict[str, Any]]:
        sessions = self.fetch("/sessions", query)
        return sorted(sessions, key=lambda s: s.get("date_start") or "")

    def _meeting(self, meeting_key: Optional[int]) -> Optional[Dict[str, Any]]:
        if meeting_key is None:
            return None
        try:
            meetings = self.fetch("/meetings", f"meeting_key={meeting_key}")
        except UpstreamError as e:
            logger.info("Meeting details unavailable for %s: %s", meeting_key, e)
            return None
        return meetings[0] if meetings else None

    def _last_race_session(self, year: int) -> Dict[str, Any]:
        sessions = self._race_sessions(f"session_name=Race&year={year}")
        if not sessions:
            raise UpstreamError(f"No race sessions found for {year}")
        return sessions[-1]

    def get_next_race(
        self,
        now: Optional[datetime] = None,
        tz_name: str = DEFAULT_TIMEZONE,
    ) -> RaceRecord:
        """Next Race session this year, else the first one next year."""
        now = now or datetime.now(timezone.utc)
        try:
            sessions = self._race_sessions(
                f"session_name=Race&year={now.year}&date_start>={now.date().isoformat()}"
            )
            if not sessions:
                sessions = self._race_sessions(f"session_name=Race&year={now.year + 1}")
            if not sessions:
                raise UpstreamError("No upcoming races found")
            session = sessions[0]
            race = race_from_session(session, self._meeting(session.get("meeting_key")))
        except _READ_ERRORS as e:
            logger.info("Using mock race data due to API error: %s", e)
            return MOCK_RACE
        return localize_race(race, tz_name)

    def get_driver_standings(self, now: Optional[datetime] = None) -> List[DriverStanding]:
        """Top 5 drivers by final position in the last race of the standings season."""
        now = now or datetime.now(timezone.utc)
        year = standings_year(now)
        logger.info("Fetching driver standings for year: %s", year)
        try:
            session_key = self._last_race_session(year)["session_key"]
            positions = self.fetch("/position", f"session_key={session_key}")
            if not positions:
                raise UpstreamError("No position data found")

            # Final position = latest sample per driver (ISO timestamps sort lexically)
            final: Dict[int, Dict[str, Any]] = {}
            for pos in positions:
                existing = final.get(pos["driver_number"])
                if existing is None or (pos.get("date") or "") > (existing.get("date") or ""):
                    final[pos["driver_number"]] = pos

            drivers = self.fetch("/drivers", f"session_key={session_key}")
            by_number = {d.get("driver_number"): d for d in drivers}

            top = sorted(final.values(), key=lambda p: p["position"])[:TOP_N]
            standings = []
            for i, pos in enumerate(top):
                driver = by_number.get(pos["driver_number"])
                position = pos.get("position") or i + 1
                if driver:
                    name = driver.get("full_name") or f"{driver.get('first_name', '')} {driver.get('last_name', '')}".strip()
                else:
                    name = ""
                standings.append(
                    DriverStanding(
                        position=position,
                        driver=name or f"Driver {pos['driver_number']}",
                        team=(driver or {}).get("team_name") or "Unknown Team",
                        points=estimated_driver_points(position),
                    )
                )
        except _READ_ERRORS as e:
            logger.info("Using mock driver standings due to API error: %s", e)
            return list(MOCK_DRIVERS)
        return standings

    def get_team_standings(self, now: Optional[datetime] = None) -> List[TeamStanding]:
        """Top 5 teams from the last race of the standings season (points are estimated)."""
        now = now or datetime.now(timezone.utc)
        year = standings_year(now)
        logger.info("Fetching team standings for year: %s", year)
        try:
            session_key = self._last_race_session(year)["session_key"]
            drivers = self.fetch("/drivers", f"session_key={session_key}")
            if not drivers:
                raise UpstreamError("No team data found")
            teams: List[str] = []
            for d in drivers:
                team = d.get("team_name")
                if team and team not in teams:
                    teams.append(team)
        except _READ_ERRORS as e:
            logger.info("Using mock team standings due to API error: %s", e)
            return list(MOCK_TEAMS)
        if not teams:
            return list(MOCK_TEAMS)
        return [
            TeamStanding(position=i + 1, team=team, points=860 - i * 100)
            for i, team in enumerate(teams[:TOP_N])
        ]
