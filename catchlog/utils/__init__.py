"""Utilities package"""

from .geo import haversine_km
from .logger import setup_logging

__all__ = ['haversine_km', 'setup_logging']
