"""Configuration: env, Yoto credentials, upstream API endpoints, timeouts."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of gridcard package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so YOTO_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("GRIDCARD_DATA_DIR", str(BASE_DIR / "data")))
STORE_PATH = DATA_DIR / "store.json"
ASSETS_DIR = BASE_DIR / "assets"
# Card art is not shipped; a missing file means cards are published without a cover
COVER_IMAGE_PATH = Path(
    os.getenv("GRIDCARD_COVER_IMAGE", str(ASSETS_DIR / "card-images" / "countdown-to-f1-card.png"))
)

# API
API_HOST = os.getenv("GRIDCARD_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("GRIDCARD_API_PORT", "8000"))
API_RELOAD = os.getenv("GRIDCARD_RELOAD", "").lower() in ("1", "true", "yes")

# Yoto (OAuth; tokens stored in the local store after first connect)
YOTO_CLIENT_ID = os.getenv("YOTO_CLIENT_ID", "")
YOTO_CLIENT_SECRET = os.getenv("YOTO_CLIENT_SECRET", "")
GRIDCARD_APP_URL = os.getenv("GRIDCARD_APP_URL", f"http://localhost:{API_PORT}")
YOTO_REDIRECT_URI = os.getenv("YOTO_REDIRECT_URI", f"{GRIDCARD_APP_URL.rstrip('/')}/api/auth/callback")
YOTO_AUDIENCE = "https://api.yotoplay.com"
YOTO_SCOPES = "offline_access"
# After OAuth callback, redirect here (e.g. http://localhost:5173 for Vite dev)
GRIDCARD_WEB_ORIGIN = os.getenv("GRIDCARD_WEB_ORIGIN", "")

YOTO_AUTH_BASE = os.getenv("YOTO_AUTH_BASE", "https://login.yotoplay.com")
YOTO_API_BASE = os.getenv("YOTO_API_BASE", "https://api.yotoplay.com")
YOTO_LABS_API_BASE = os.getenv("YOTO_LABS_API_BASE", "https://labs.api.yotoplay.com")
DEFAULT_VOICE_ID = os.getenv("YOTO_VOICE_ID", "JBFqnCBsd6RMkjVDRZzb")  # ElevenLabs voice

# Card titles
TTS_CARD_TITLE = "F1: Next Race"
MYO_CARD_TITLE = "F1 Update"

# OpenF1 (documented limit is 3 requests/sec; calls are spaced, never retried)
OPENF1_API_BASE = os.getenv("OPENF1_API_BASE", "https://api.openf1.org/v1")
OPENF1_MIN_INTERVAL_SEC = float(os.getenv("GRIDCARD_OPENF1_INTERVAL", "0.45"))

# Weather (OpenWeatherMap) and caller geolocation
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", "")
WEATHER_API_BASE = os.getenv("WEATHER_API_BASE", "https://api.openweathermap.org/data/2.5")
GEO_API_BASE = os.getenv("GEO_API_BASE", "http://ip-api.com/json")
DEFAULT_TIMEZONE = os.getenv("GRIDCARD_TIMEZONE", "UTC")

# Timeouts (seconds)
FETCH_TIMEOUT_SEC = 5.0
GEO_TIMEOUT_SEC = 3.0
YOTO_TIMEOUT_SEC = 30.0
AUDIO_UPLOAD_TIMEOUT_SEC = 120.0

# Transcoding poll loop
TRANSCODE_POLL_INTERVAL_SEC = float(os.getenv("GRIDCARD_TRANSCODE_INTERVAL", "1.0"))
TRANSCODE_MAX_ATTEMPTS = int(os.getenv("GRIDCARD_TRANSCODE_ATTEMPTS", "60"))

# Device deploy fan-out
DEPLOY_MAX_WORKERS = 8


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
