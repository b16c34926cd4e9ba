# Configuration module for the request protection layer
from .settings import Settings, Environment, get_settings, validate_startup

__all__ = ["Settings", "Environment", "get_settings", "validate_startup"]
