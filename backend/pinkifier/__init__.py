# backend/pinkifier/__init__.py
"""Pinkifier - tinted profile picture service."""

from .constants import APP_VERSION

__version__ = APP_VERSION
