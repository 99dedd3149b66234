"""Core application"""

from .app import CatchLogApp

__all__ = ['CatchLogApp']
