"""
Unit Tests for Configuration Loader

Tests environment-driven settings for sessions and reasoners.
"""

import pytest
import os


@pytest.mark.unit
class TestConfigLoader:
    """Test configuration loading functionality."""

    def test_config_loader_initialization(self):
        """Test ConfigLoader initialization."""
        from config.config_loader import ConfigLoader

        loader = ConfigLoader()

        assert loader.project_root is not None
        assert loader.config_dir.exists()

    def test_load_config_returns_summary(self):
        """Test that load_config returns a summary dictionary."""
        from config.config_loader import ConfigLoader

        loader = ConfigLoader()
        summary = loader.load_config('test')

        assert isinstance(summary, dict)
        assert summary['environment'] == 'test'
        assert 'loaded_files' in summary
        assert 'ONTOLITE_REASONER' in summary['key_settings']

    def test_test_environment_selects_el(self):
        """Test that the test environment binds the EL reasoner by default."""
        from config.config_loader import ConfigLoader

        loader = ConfigLoader()
        loader.load_config('test')

        assert loader.get_default_reasoner() == 'EL'

    def test_reasoner_name_is_upper_cased(self, monkeypatch):
        """Test reasoner names are normalised."""
        from config.config_loader import ConfigLoader

        monkeypatch.setenv('ONTOLITE_REASONER', ' pellet ')

        assert ConfigLoader().get_default_reasoner() == 'PELLET'

    def test_unknown_save_format_falls_back_to_xml(self, monkeypatch):
        """Test save format validation."""
        from config.config_loader import ConfigLoader

        monkeypatch.setenv('ONTOLITE_SAVE_FORMAT', 'docx')

        assert ConfigLoader().get_save_format() == 'xml'

    def test_save_format_from_environment(self, monkeypatch):
        """Test a valid save format is used as given."""
        from config.config_loader import ConfigLoader

        monkeypatch.setenv('ONTOLITE_SAVE_FORMAT', 'Turtle')

        assert ConfigLoader().get_save_format() == 'turtle'

    def test_max_explanations(self, monkeypatch):
        """Test the justification bound is a non-negative integer."""
        from config.config_loader import ConfigLoader

        loader = ConfigLoader()
        monkeypatch.setenv('ONTOLITE_MAX_EXPLANATIONS', '3')
        assert loader.get_max_explanations() == 3

        monkeypatch.setenv('ONTOLITE_MAX_EXPLANATIONS', '-2')
        assert loader.get_max_explanations() == 0

        monkeypatch.setenv('ONTOLITE_MAX_EXPLANATIONS', 'many')
        assert loader.get_max_explanations() == 0

    def test_java_memory(self, monkeypatch):
        """Test Java heap size retrieval."""
        from config.config_loader import ConfigLoader

        monkeypatch.setenv('ONTOLITE_JAVA_MEMORY', '4096')

        assert ConfigLoader().get_java_memory() == 4096

    def test_is_debug_mode(self, monkeypatch):
        """Test debug mode detection."""
        from config.config_loader import ConfigLoader

        loader = ConfigLoader()
        monkeypatch.setenv('ONTOLITE_DEBUG', 'yes')
        assert loader.is_debug_mode() is True

        monkeypatch.setenv('ONTOLITE_DEBUG', 'false')
        assert loader.is_debug_mode() is False


@pytest.mark.unit
class TestEnvironmentPriority:
    """Test configuration priority order."""

    def test_environment_variables_take_priority(self, monkeypatch):
        """Test that already-set variables are not overridden by config files."""
        from config.config_loader import ConfigLoader

        monkeypatch.setenv('ONTOLITE_REASONER', 'PELLET')
        loader = ConfigLoader()
        loader.load_config('test')

        assert os.environ['ONTOLITE_REASONER'] == 'PELLET'
        assert loader.get_default_reasoner() == 'PELLET'

    def test_missing_environment_file_is_tolerated(self):
        """Test loading an environment without a config file."""
        from config.config_loader import ConfigLoader

        summary = ConfigLoader().load_config('nonexistent')

        assert summary['environment'] == 'nonexistent'


@pytest.mark.unit
class TestGlobalConfigLoader:
    """Test global configuration loader instance."""

    def test_get_config_loader_singleton(self):
        """Test that get_config_loader returns same instance."""
        from config.config_loader import get_config_loader

        assert get_config_loader() is get_config_loader()
