"""Configuration package for the Arena REST facade."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
