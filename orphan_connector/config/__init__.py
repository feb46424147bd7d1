"""Configuration module for the orphan account connector."""
from .settings import ConnectorConfig, load_settings

__all__ = ["ConnectorConfig", "load_settings"]
