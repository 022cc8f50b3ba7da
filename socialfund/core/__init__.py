"""Configuration, logging and the error hierarchy shared by every layer."""

from .config import Settings, get_settings
from .errors import AppError
from .logger import get_logger, log_context

__all__ = ["AppError", "Settings", "get_logger", "get_settings", "log_context"]
