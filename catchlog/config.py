"""Configuration for the catchlog offline sync core"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
_repo_root = Path(__file__).parent.parent.resolve()
_env_file = _repo_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

# Local data (SQLite database + offline photos)
DATA_DIR = Path(os.getenv("CATCHLOG_DATA_DIR", str(Path.home() / ".catchlog" / "data"))).expanduser()
DB_PATH = Path(os.getenv("CATCHLOG_DB_PATH", str(DATA_DIR / "catchlog.db")))
PHOTO_DIR = DATA_DIR / "photos"

# Remote backend (Cloud Firestore)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "catchlog")
FIRESTORE_CATCHES_COLLECTION = os.getenv("FIRESTORE_CATCHES_COLLECTION", "catches")
FIRESTORE_SPECIES_COLLECTION = os.getenv("FIRESTORE_SPECIES_COLLECTION", "fish_species")
REMOTE_TIMEOUT_S = float(os.getenv("REMOTE_TIMEOUT_S", "10"))

# Weather API (OpenWeatherMap)
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", "")
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.openweathermap.org/data/2.5/weather")
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "15"))

# Connectivity
PROBE_HOST = os.getenv("PROBE_HOST", "firestore.googleapis.com")
PROBE_PORT = int(os.getenv("PROBE_PORT", "443"))
PROBE_TIMEOUT_S = float(os.getenv("PROBE_TIMEOUT_S", "3"))
CONNECTIVITY_POLL_INTERVAL_S = float(os.getenv("CONNECTIVITY_POLL_INTERVAL_S", "5"))
SYNC_DEBOUNCE_S = float(os.getenv("SYNC_DEBOUNCE_S", "2"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/catchlog.log")

# Debug
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
