"""Weather service - current conditions from OpenWeatherMap, cached per location"""

import asyncio
import logging
from typing import Any, Optional

import requests

from .. import config
from ..errors import StorageError
from ..storage.cache import CACHE_MISS, CacheStore
from ..storage.models import Location, WeatherSnapshot
from .http import create_session

logger = logging.getLogger(__name__)


def normalize_weather(payload: dict[str, Any]) -> dict[str, Any]:
    """Reduce an OpenWeatherMap ``/weather`` response to the fields the app uses."""
    main = payload.get("main", {})
    wind = payload.get("wind", {})
    conditions = payload.get("weather") or [{}]
    visibility = payload.get("visibility")
    return {
        "temperature": main.get("temp"),
        "feelsLike": main.get("feels_like"),
        "pressure": main.get("pressure"),
        "humidity": main.get("humidity"),
        "windSpeed": wind.get("speed"),
        "windDirection": wind.get("deg"),
        "cloudCover": payload.get("clouds", {}).get("all"),
        "conditions": conditions[0].get("description", ""),
        "icon": conditions[0].get("icon"),
        "visibility": visibility / 1000 if visibility is not None else None,  # km
    }


class WeatherService:
    def __init__(
        self,
        cache: CacheStore,
        session: Optional[requests.Session] = None,
        api_key: str = config.WEATHER_API_KEY,
        api_url: str = config.WEATHER_API_URL,
    ):
        self.cache = cache
        self.session = session or create_session()
        self.api_key = api_key
        self.api_url = api_url
        self.last_location: Optional[Location] = None

    async def get_current_weather(self, location: Location) -> dict[str, Any]:
        """Cached weather within 5 km and 24 h, otherwise a fresh fetch."""
        self.last_location = location

        cached = await self.cache.get_cached_weather(location)
        if cached is not CACHE_MISS:
            return cached

        weather = await asyncio.to_thread(self._fetch, location)
        try:
            await self.cache.cache_weather(weather, location)
        except StorageError as e:
            logger.warning(f"Could not cache weather: {e}")
        return weather

    def _fetch(self, location: Location) -> dict[str, Any]:
        resp = self.session.get(
            self.api_url,
            params={
                "lat": location.latitude,
                "lon": location.longitude,
                "appid": self.api_key,
                "units": "metric",
            },
        )
        resp.raise_for_status()
        logger.debug(f"Fetched weather for {location.latitude:.4f},{location.longitude:.4f}")
        return normalize_weather(resp.json())

    async def refresh(self) -> Optional[dict[str, Any]]:
        """Warm the cache for the last location the app asked about."""
        if self.last_location is None:
            logger.debug("No known location, skipping weather refresh")
            return None
        return await self.get_current_weather(self.last_location)

    async def cached_snapshot(self, location: Location) -> Optional[WeatherSnapshot]:
        """Weather snapshot for a new catch, from the cache only (never the network)."""
        cached = await self.cache.get_cached_weather(location)
        if cached is CACHE_MISS:
            return None
        try:
            return WeatherSnapshot(
                temperature=cached["temperature"],
                pressure=cached["pressure"],
                windSpeed=cached["windSpeed"],
                conditions=cached["conditions"],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Cached weather not usable as snapshot: {e}")
            return None
