"""
Gatekeeper Logging Module

Provides structured JSON logging and YAML logging configuration.
"""

from .logger import configure_logging, tty_default_level, StructuredFormatter

__all__ = ['configure_logging', 'tty_default_level', 'StructuredFormatter']
