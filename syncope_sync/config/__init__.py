"""Configuration module for the Syncope sync application."""
from .settings import AppConfig, configure_logging, load_settings

__all__ = ["AppConfig", "configure_logging", "load_settings"]
