"""
ontolite Configuration Package

Provides environment-driven settings for sessions, reasoners and the CLI.
"""

from .config_loader import load_ontolite_config, get_config_loader, ConfigLoader

__all__ = ['load_ontolite_config', 'get_config_loader', 'ConfigLoader']
