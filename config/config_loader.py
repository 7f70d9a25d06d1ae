"""
ontolite Configuration Loader

Centralized configuration loading for ontolite sessions and the CLI.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

SAVE_FORMATS = ('xml', 'turtle', 'nt', 'n3', 'json-ld')


class ConfigLoader:
    """
    Configuration loader for ontolite.

    Priority order (highest to lowest):
    1. Environment variables (already set)
    2. .env file in project root
    3. config/{environment}.env file
    4. Default values
    """

    def __init__(self, project_root: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            project_root: Project root directory (auto-detected if not provided)
        """
        self.project_root = project_root or self._detect_project_root()
        self.config_dir = self.project_root / "config"
        self.loaded_files = []

    def _detect_project_root(self) -> Path:
        """
        Detect project root directory.

        Looks for directory containing 'config' folder or pyproject.toml.
        """
        current = Path(__file__).parent.parent

        if (current / "config").exists() or (current / "pyproject.toml").exists():
            return current

        parent = current.parent
        if (parent / "config").exists() or (parent / "pyproject.toml").exists():
            return parent

        logger.warning(f"Could not definitively detect project root, using: {current}")
        return current

    def load_config(self, environment: Optional[str] = None) -> dict:
        """
        Load configuration from appropriate sources.

        Args:
            environment: Environment name (development/test)
                        Auto-detected from ENVIRONMENT if not provided

        Returns:
            Dictionary of loaded configuration (for verification purposes)
        """
        if environment is None:
            environment = os.environ.get('ENVIRONMENT', 'development')

        logger.info(f"Loading configuration for environment: {environment}")
        logger.info(f"Project root: {self.project_root}")

        # 1. Environment-specific config file (never overrides what is already set)
        env_file = self.config_dir / f"{environment}.env"
        if env_file.exists():
            load_dotenv(env_file, override=False)
            self.loaded_files.append(str(env_file))
            logger.info(f"✅ Loaded config file: {env_file}")
        else:
            logger.warning(f"⚠️  Config file not found: {env_file}")

        # 2. Project .env
        root_env = self.project_root / ".env"
        if root_env.exists():
            load_dotenv(root_env, override=True)
            self.loaded_files.append(str(root_env))
            logger.info(f"✅ Loaded root .env file: {root_env}")

        config_summary = {
            'project_root': str(self.project_root),
            'config_dir': str(self.config_dir),
            'environment': environment,
            'loaded_files': self.loaded_files,
            'key_settings': {
                'ENVIRONMENT': os.environ.get('ENVIRONMENT'),
                'ONTOLITE_REASONER': self.get_default_reasoner(),
                'ONTOLITE_SAVE_FORMAT': self.get_save_format(),
                'ONTOLITE_MAX_EXPLANATIONS': self.get_max_explanations(),
                'ONTOLITE_JAVA_MEMORY': self.get_java_memory(),
            }
        }

        logger.info("Configuration loaded successfully")
        return config_summary

    def get_default_reasoner(self) -> str:
        """Get the name of the reasoner bound to new ontologies."""
        return os.environ.get('ONTOLITE_REASONER', 'HERMIT').strip().upper()

    def get_save_format(self) -> str:
        """Get the rdflib serialisation format used when saving."""
        fmt = os.environ.get('ONTOLITE_SAVE_FORMAT', 'xml').strip().lower()
        if fmt not in SAVE_FORMATS:
            logger.warning(f"⚠️  Unknown save format '{fmt}', falling back to 'xml'")
            return 'xml'
        return fmt

    def get_max_explanations(self) -> int:
        """Get the justification bound (0 means enumerate all)."""
        try:
            value = int(os.environ.get('ONTOLITE_MAX_EXPLANATIONS', 0))
        except ValueError:
            logger.warning("⚠️  ONTOLITE_MAX_EXPLANATIONS is not an integer, using 0")
            return 0
        return max(value, 0)

    def get_java_memory(self) -> int:
        """Get the heap size (MB) handed to the DL reasoners' Java VM."""
        return int(os.environ.get('ONTOLITE_JAVA_MEMORY', 2000))

    def get_log_level(self) -> str:
        """Get the log level name used by the CLI."""
        return os.environ.get('ONTOLITE_LOG_LEVEL', 'WARNING').upper()

    def is_debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return os.environ.get('ONTOLITE_DEBUG', 'false').lower() in ('1', 'true', 'yes')


# Global configuration loader instance
_config_loader = None


def get_config_loader(project_root: Optional[Path] = None) -> ConfigLoader:
    """
    Get or create global configuration loader instance.

    Args:
        project_root: Project root directory (only used on first call)

    Returns:
        ConfigLoader instance
    """
    global _config_loader

    if _config_loader is None:
        _config_loader = ConfigLoader(project_root)

    return _config_loader


def load_ontolite_config(environment: Optional[str] = None) -> dict:
    """
    Convenience function to load ontolite configuration.

    Args:
        environment: Environment name (auto-detected if not provided)

    Returns:
        Configuration summary dictionary
    """
    loader = get_config_loader()
    return loader.load_config(environment)
