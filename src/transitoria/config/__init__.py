"""Configuration module for Transitoria."""

from transitoria.config.locales import LocaleVocabulary, available_locales, load_locale
from transitoria.config.logging import configure_logging
from transitoria.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "LocaleVocabulary",
    "available_locales",
    "load_locale",
]
