"""Weather at the race location (OpenWeatherMap) and caller timezone lookup (IP geolocation)."""
import ipaddress
import logging
from typing import Optional

import requests

from gridcard.config import (
    DEFAULT_TIMEZONE,
    FETCH_TIMEOUT_SEC,
    GEO_API_BASE,
    GEO_TIMEOUT_SEC,
    WEATHER_API_BASE,
    WEATHER_API_KEY,
)
from gridcard.core.errors import UpstreamError
from gridcard.core.http import send_json
from gridcard.models.race import WeatherReport

logger = logging.getLogger(__name__)


class WeatherClient:
    """Current conditions by place name. Returns None when unconfigured or unavailable."""

    def __init__(
        self,
        session: requests.Session,
        *,
        api_key: str = WEATHER_API_KEY,
        base_url: str = WEATHER_API_BASE,
        timeout: float = FETCH_TIMEOUT_SEC,
    ) -> None:
        self.session = session
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_weather(self, location: Optional[str]) -> Optional[WeatherReport]:
        if not location:
            return None
        if not self.api_key:
            logger.info("WEATHER_API_KEY not set, skipping weather")
            return None
        try:
            data = send_json(
                self.session,
                "GET",
                f"{self.base_url}/weather",
                timeout=self.timeout,
                params={"q": location, "appid": self.api_key, "units": "metric"},
            )
            return WeatherReport(
                location=data.get("name") or location,
                temperature=round(data["main"]["temp"]),
                description=data["weather"][0]["description"],
                humidity=int(data["main"]["humidity"]),
                wind_speed=round(data["wind"]["speed"]),
            )
        except (UpstreamError, LookupError, TypeError, ValueError) as e:
            logger.info("Weather unavailable for %s: %s", location, e)
            return None


def _is_public_ip(ip: str) -> bool:
    try:
        return ipaddress.ip_address(ip).is_global
    except ValueError:
        return False


def lookup_timezone(
    session: requests.Session,
    ip: Optional[str],
    *,
    base_url: str = GEO_API_BASE,
    timeout: float = GEO_TIMEOUT_SEC,
    default: str = DEFAULT_TIMEZONE,
) -> str:
    """IANA timezone of the caller's IP, or default for local addresses and failures."""
    if not ip or not _is_public_ip(ip):
        return default
    try:
        data = send_json(
            session,
            "GET",
            f"{base_url.rstrip('/')}/{ip}",
            timeout=timeout,
            params={"fields": "status,timezone"},
        )
    except UpstreamError as e:
        logger.info("Geolocation lookup failed for %s: %s", ip, e)
        return default
    if not isinstance(data, dict) or data.get("status") != "success" or not data.get("timezone"):
        return default
    return data["timezone"]
