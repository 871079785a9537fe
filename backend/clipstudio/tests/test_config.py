"""
Configuration System Tests
==========================
Verifies that the configuration management system works correctly.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from clipstudio.config import (
    AppConfig,
    get_config,
    set_config,
    reset_config,
    apply_environment_overrides,
    get_test_config,
    get_production_config,
)


def test_default_config():
    """Test that default configuration is created correctly."""
    reset_config()
    config = get_config()

    assert config is not None
    assert config.gemini.model_name == "gemini-2.5-flash"
    assert config.sampling.frame_count == 9
    assert config.sampling.seek_timeout_seconds == 0.5
    assert config.sampling.scale == 0.25
    assert config.clips.min_duration_seconds == 15.0
    assert config.clips.max_duration_seconds == 59.0
    assert config.clips.clip_count == 3
    assert config.captions.gap_seconds == 0.5
    assert config.playback.drift_tolerance_seconds == 0.5
    assert config.flask.port == 5000

    print("[PASS] Default configuration test passed")


def test_config_singleton():
    """Test that get_config returns the same instance."""
    reset_config()
    config1 = get_config()
    config2 = get_config()

    assert config1 is config2

    replacement = AppConfig()
    set_config(replacement)
    assert get_config() is replacement

    reset_config()
    print("[PASS] Singleton test passed")


def test_config_serialization():
    """Test configuration save and load."""
    config = AppConfig()
    config.logging.session_name = "test_session"
    config.clips.max_duration_seconds = 45.0

    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        temp_path = f.name

    try:
        config.save(temp_path)
        loaded_config = AppConfig.load(temp_path)

        assert loaded_config.logging.session_name == "test_session"
        assert loaded_config.clips.max_duration_seconds == 45.0
        assert loaded_config.sampling.frame_count == config.sampling.frame_count

        print("[PASS] Serialization test passed")
    finally:
        os.unlink(temp_path)


def test_api_key_never_serialized():
    """The API key must not end up in saved configuration files."""
    config = AppConfig()
    config.gemini.api_key = "secret-key"

    config_dict = config.to_dict()
    assert config_dict['gemini']['api_key'] is None
    assert config.gemini.is_configured

    print("[PASS] API key serialization test passed")


def test_environment_overrides():
    """Test CLIP_STUDIO_* and simplified environment variables."""
    env = {
        'CLIP_STUDIO_SAMPLING_FRAME_COUNT': '12',
        'CLIP_STUDIO_CLIPS_MAX_DURATION_SECONDS': '45.5',
        'CLIP_STUDIO_LOGGING_LOG_LEVEL': 'DEBUG',
        'CLIP_STUDIO_FLASK_DEBUG': 'false',
        'GOOGLE_API_KEY': 'from-env',
        'PORT': '8080',
    }
    with patch.dict(os.environ, env, clear=False):
        config = apply_environment_overrides(AppConfig())

    assert config.sampling.frame_count == 12
    assert config.clips.max_duration_seconds == 45.5
    assert config.logging.log_level == "DEBUG"
    assert config.flask.debug is False
    assert config.gemini.api_key == "from-env"
    assert config.flask.port == 8080

    print("[PASS] Environment overrides test passed")


def test_invalid_environment_override_ignored():
    """A malformed override keeps the default."""
    with patch.dict(os.environ, {'CLIP_STUDIO_SAMPLING_FRAME_COUNT': 'many'}, clear=False):
        config = apply_environment_overrides(AppConfig())

    assert config.sampling.frame_count == 9
    print("[PASS] Invalid override test passed")


def test_presets():
    """Test preset configurations."""
    test_config = get_test_config(seed=7)
    assert test_config.gemini.api_key is None
    assert not test_config.gemini.is_configured
    assert test_config.logging.random_seed == 7

    production = get_production_config()
    assert production.flask.debug is False

    print("[PASS] Preset configuration test passed")


def test_paths_created():
    """Test that required directories are created."""
    with tempfile.TemporaryDirectory() as tmp:
        config = AppConfig()
        config.paths.base_dir = Path(tmp)
        config.paths.ensure_directories()

        assert config.paths.uploads.exists()
        assert config.paths.logs.exists()

    print("[PASS] Path creation test passed")


def test_config_to_dict():
    """Test configuration dictionary export."""
    config = AppConfig()
    config_dict = config.to_dict()

    assert isinstance(config_dict, dict)
    assert 'gemini' in config_dict
    assert 'sampling' in config_dict
    assert config_dict['export']['export_quality'] == '1080p'

    restored = AppConfig.from_dict(config_dict)
    assert restored.captions.placeholder_phrases == config.captions.placeholder_phrases

    print("[PASS] Config to_dict test passed")


def run_all_tests():
    """Run all configuration tests."""
    print("\n" + "="*60)
    print("CONFIGURATION SYSTEM TESTS")
    print("="*60 + "\n")

    test_default_config()
    test_config_singleton()
    test_config_serialization()
    test_api_key_never_serialized()
    test_environment_overrides()
    test_invalid_environment_override_ignored()
    test_presets()
    test_paths_created()
    test_config_to_dict()

    print("\n" + "="*60)
    print("ALL CONFIGURATION TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
