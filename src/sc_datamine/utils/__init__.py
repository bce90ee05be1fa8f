"""Utility helpers for sc_datamine."""

from .logging_config import setup_logging, ColoredFormatter
from . import fourcc

__all__ = ["setup_logging", "ColoredFormatter", "fourcc"]
