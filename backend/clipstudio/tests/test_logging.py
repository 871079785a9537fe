"""
Logging System Tests
====================
Verifies that the session logging system works correctly.
"""

import os
import sys
import json
import logging
from unittest.mock import MagicMock

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from clipstudio.logging_config import (
    get_studio_logger,
    get_decision_logger,
    get_repair_logger,
    log_generation_decision,
    log_repair,
    read_log_file,
    StructuredFormatter,
    ConsoleFormatter,
)
from clipstudio.config import get_config, get_test_config, set_config


def _record(msg="Test message", **extra):
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_get_studio_logger():
    """Test creating channel loggers."""
    logger = get_studio_logger("test", log_to_file=False)

    assert logger is not None
    assert logger.name == "studio.test"
    assert logger.propagate is False

    # Cached on second call
    assert get_studio_logger("test", log_to_file=False) is logger

    print("[PASS] get_studio_logger test passed")


def test_channel_loggers():
    """Test the decision and repair channel loggers."""
    assert get_decision_logger().name == "studio.decisions"
    assert get_repair_logger().name == "studio.repairs"

    print("[PASS] Channel loggers test passed")


def test_structured_formatter():
    """Test JSON formatting of log records."""
    formatter = StructuredFormatter()

    data = json.loads(formatter.format(_record(collection="clips", count=3, payload=object())))
    assert data['level'] == 'INFO'
    assert data['logger'] == 'test.logger'
    assert data['message'] == 'Test message'
    assert data['collection'] == 'clips'
    assert data['count'] == 3
    # Non-serializable extras are stringified
    assert isinstance(data['payload'], str)
    assert 'timestamp' in data

    print("[PASS] StructuredFormatter test passed")


def test_console_formatter():
    """Test console formatting of log records."""
    formatter = ConsoleFormatter(use_colors=False)

    formatted = formatter.format(_record(source="fallback"))

    assert "[INFO]" in formatted
    assert "test.logger" in formatted
    assert "Test message" in formatted
    assert "source=fallback" in formatted

    print("[PASS] ConsoleFormatter test passed")


def test_log_generation_decision():
    """Decision logging carries collection, source and the applied flag."""
    set_config(get_test_config())
    logger = MagicMock()

    log_generation_decision("clips", "fallback", count=3, reason="no key", applied=False, logger=logger)

    logger.info.assert_called_once()
    extra = logger.info.call_args.kwargs['extra']
    assert extra == {
        'collection': 'clips',
        'source': 'fallback',
        'count': 3,
        'reason': 'no key',
        'applied': False,
    }

    print("[PASS] log_generation_decision test passed")


def test_log_generation_decision_disabled():
    """Nothing is logged when decision logging is switched off."""
    config = get_test_config()
    config.logging.log_decisions = False
    set_config(config)
    logger = MagicMock()

    log_generation_decision("captions", "gemini", count=4, logger=logger)

    logger.info.assert_not_called()
    set_config(get_test_config())
    print("[PASS] Disabled decision logging test passed")


def test_log_repair():
    """Repair logging records the candidate index and action."""
    set_config(get_test_config())
    logger = MagicMock()

    log_repair("clip", 2, "clamped_end", {'start': 10.0, 'end': 25.0}, logger=logger)

    extra = logger.info.call_args.kwargs['extra']
    assert extra['entity'] == 'clip'
    assert extra['candidate_index'] == 2
    assert extra['action'] == 'clamped_end'
    assert extra['details']['end'] == 25.0

    print("[PASS] log_repair test passed")


def test_log_file_reading():
    """Test that JSONL log files are read back, skipping malformed lines."""
    config = get_config()

    test_log_path = config.paths.logs / "test" / "test_log.jsonl"
    test_log_path.parent.mkdir(parents=True, exist_ok=True)

    with open(test_log_path, 'w') as f:
        f.write(json.dumps({"level": "INFO", "message": "Test 1"}) + '\n')
        f.write('not json\n')
        f.write(json.dumps({"level": "INFO", "message": "Test 2"}) + '\n')

    try:
        loaded = read_log_file(test_log_path)
        assert [entry['message'] for entry in loaded] == ['Test 1', 'Test 2']
    finally:
        os.unlink(test_log_path)

    print("[PASS] Log file reading test passed")


def run_all_tests():
    """Run all logging tests."""
    print("\n" + "="*60)
    print("LOGGING SYSTEM TESTS")
    print("="*60 + "\n")

    test_get_studio_logger()
    test_channel_loggers()
    test_structured_formatter()
    test_console_formatter()
    test_log_generation_decision()
    test_log_generation_decision_disabled()
    test_log_repair()
    test_log_file_reading()

    print("\n" + "="*60)
    print("ALL LOGGING TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
