"""
Unit tests for config.defaults module.

Tests cover:
- Conversation timing defaults
- Environment overrides and their precedence over YAML
- Logging defaults
"""

import pytest

from voice_controller.config.defaults import (
    DEFAULT_ENDING_TIMEOUT_MS,
    DEFAULT_GOODBYE_GRACE_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROCESSING_DEBOUNCE_MS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_SILENCE_TIMEOUT_MS,
    apply_logging_defaults,
    apply_timing_defaults,
)


class TestApplyTimingDefaults:
    """Tests for apply_timing_defaults function."""

    def test_default_values_when_no_env(self):
        """Should use hardcoded defaults when nothing is configured."""
        config_data = {}
        apply_timing_defaults(config_data, {})

        assert config_data['timing'] == {
            'silence_timeout_ms': 7000,
            'ending_timeout_ms': 15000,
            'goodbye_grace_ms': 2000,
            'retry_delay_ms': 1000,
            'processing_debounce_ms': 300,
            'max_retries': 2,
        }

    def test_constants(self):
        assert DEFAULT_SILENCE_TIMEOUT_MS == 7000
        assert DEFAULT_ENDING_TIMEOUT_MS == 15000
        assert DEFAULT_GOODBYE_GRACE_MS == 2000
        assert DEFAULT_RETRY_DELAY_MS == 1000
        assert DEFAULT_PROCESSING_DEBOUNCE_MS == 300
        assert DEFAULT_MAX_RETRIES == 2

    def test_preserve_yaml_values_if_present(self):
        config_data = {'timing': {'silence_timeout_ms': 5000, 'max_retries': 4}}
        apply_timing_defaults(config_data, {})

        assert config_data['timing']['silence_timeout_ms'] == 5000
        assert config_data['timing']['max_retries'] == 4
        assert config_data['timing']['ending_timeout_ms'] == 15000

    def test_env_overrides_yaml(self):
        config_data = {'timing': {'silence_timeout_ms': 5000}}
        apply_timing_defaults(config_data, {'SILENCE_TIMEOUT_MS': '9000', 'MAX_RETRIES': '3'})

        assert config_data['timing']['silence_timeout_ms'] == 9000
        assert config_data['timing']['max_retries'] == 3

    def test_process_environment_used_by_default(self, monkeypatch):
        monkeypatch.setenv('GOODBYE_GRACE_MS', '1500')
        config_data = {}
        apply_timing_defaults(config_data)
        assert config_data['timing']['goodbye_grace_ms'] == 1500

    @pytest.mark.parametrize("raw", ["", "  ", "soon"])
    def test_unparseable_env_falls_back(self, raw):
        config_data = {'timing': {'retry_delay_ms': 250}}
        apply_timing_defaults(config_data, {'RETRY_DELAY_MS': raw})
        assert config_data['timing']['retry_delay_ms'] == 250

    def test_non_mapping_timing_raises(self):
        with pytest.raises(TypeError):
            apply_timing_defaults({'timing': [1, 2]}, {})


class TestApplyLoggingDefaults:
    """Tests for apply_logging_defaults function."""

    def test_defaults(self):
        config_data = {}
        apply_logging_defaults(config_data, {})
        assert config_data['logging'] == {'level': 'info', 'format': 'json'}

    def test_yaml_values_lowercased(self):
        config_data = {'logging': {'level': 'DEBUG', 'format': 'Console'}}
        apply_logging_defaults(config_data, {})
        assert config_data['logging'] == {'level': 'debug', 'format': 'console'}

    def test_env_overrides(self):
        config_data = {'logging': {'level': 'debug'}}
        apply_logging_defaults(config_data, {'LOG_LEVEL': 'WARNING', 'LOG_FORMAT': 'console'})
        assert config_data['logging'] == {'level': 'warning', 'format': 'console'}
