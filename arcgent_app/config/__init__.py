"""Configuration management for the Arcgent service."""

from .defaults import AppConfig, ProviderConfig, get_default_config
from .loader import ConfigLoader

__all__ = ["AppConfig", "ProviderConfig", "ConfigLoader", "get_default_config"]
