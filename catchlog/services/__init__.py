"""Services package"""

from .catch_service import CatchService, LogCatchOutcome
from .species_service import SpeciesService
from .weather_service import WeatherService

__all__ = ['CatchService', 'LogCatchOutcome', 'SpeciesService', 'WeatherService']
