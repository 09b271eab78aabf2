"""
Gatekeeper utilities
"""

from .config_loader import ConfigLoader, GatekeeperConfig, load_config

__all__ = ['ConfigLoader', 'GatekeeperConfig', 'load_config']
