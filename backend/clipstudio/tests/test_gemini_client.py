"""
Gemini Collaborator Tests
=========================
Verifies request transport and JSON decoding with a mocked model.
"""

import os
import sys
import base64
from unittest.mock import MagicMock, patch

import pytest

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from clipstudio.config import GeminiConfig, get_test_config, set_config
from clipstudio.exceptions import CollaboratorUnavailableError, ResponseFormatError
from clipstudio.models import AnalyzedFrame
from clipstudio.services.gemini_client import GeminiCollaborator, strip_code_fences
from clipstudio.services.request_builder import HighlightRequestBuilder

set_config(get_test_config())


def _request():
    frame = AnalyzedFrame(timestamp=5.0, image=base64.b64encode(b"jpeg").decode("ascii"))
    return HighlightRequestBuilder().build(60.0, "context", [frame], 15.0, 59.0)


def _collaborator(response_text, api_key="test-key"):
    model = MagicMock()
    model.generate_content.return_value = MagicMock(text=response_text)
    factory = MagicMock(return_value=model)
    config = GeminiConfig(api_key=api_key)
    return GeminiCollaborator(config, model_factory=factory), model, factory


def test_strip_code_fences():
    """Markdown fences around JSON are removed."""
    assert strip_code_fences('```json\n[1, 2]\n```') == '[1, 2]'
    assert strip_code_fences('  [] ') == '[]'

    print("[PASS] strip_code_fences test passed")


def test_missing_key_never_calls_model():
    """Without credentials the collaborator refuses before any SDK call."""
    collaborator, model, factory = _collaborator('[]', api_key=None)

    assert not collaborator.is_available
    with pytest.raises(CollaboratorUnavailableError):
        collaborator.request_json(_request())

    factory.assert_not_called()
    model.generate_content.assert_not_called()

    print("[PASS] Missing key test passed")


def test_request_json_decodes_response():
    """The JSON reply is decoded and the schema is requested."""
    collaborator, model, factory = _collaborator('```json\n[{"start": 1, "end": 20}]\n```')
    request = _request()

    result = collaborator.request_json(request)

    assert result == [{'start': 1, 'end': 20}]
    factory.assert_called_once_with(request.system_instruction)

    args, kwargs = model.generate_content.call_args
    assert args[0][0] == "Frame 1 at timestamp 5.0s:"
    assert kwargs['generation_config']['response_mime_type'] == 'application/json'
    assert kwargs['generation_config']['response_schema'] is request.response_schema

    print("[PASS] JSON decoding test passed")


def test_model_reused_per_system_instruction():
    """The model is created once per system instruction."""
    collaborator, model, factory = _collaborator('[]')

    collaborator.request_json(_request())
    collaborator.request_json(_request())

    assert factory.call_count == 1
    assert model.generate_content.call_count == 2

    print("[PASS] Model reuse test passed")


def test_invalid_json_raises_format_error():
    """Unparseable replies become ResponseFormatError."""
    collaborator, _, _ = _collaborator('Sure! Here are your clips.')

    with pytest.raises(ResponseFormatError) as excinfo:
        collaborator.request_json(_request())
    assert excinfo.value.error_code == "invalid_json"

    print("[PASS] Invalid JSON test passed")


def test_empty_response_raises_format_error():
    """An empty reply is a format error, not an empty list."""
    collaborator, _, _ = _collaborator('')

    with pytest.raises(ResponseFormatError) as excinfo:
        collaborator.request_json(_request())
    assert excinfo.value.error_code == "empty_response"

    print("[PASS] Empty response test passed")


@patch('clipstudio.services.gemini_client.genai')
def test_default_model_factory(mock_genai):
    """The default factory configures the SDK once and passes the persona."""
    mock_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text='[]')
    collaborator = GeminiCollaborator(GeminiConfig(api_key="abc"))

    request = _request()
    collaborator.request_json(request)
    collaborator.request_json(request)

    mock_genai.configure.assert_called_once_with(api_key="abc")
    args, kwargs = mock_genai.GenerativeModel.call_args
    assert args[0] == "gemini-2.5-flash"
    assert kwargs['system_instruction'] == request.system_instruction

    print("[PASS] Default model factory test passed")


def run_all_tests():
    """Run all collaborator tests."""
    print("\n" + "="*60)
    print("GEMINI COLLABORATOR TESTS")
    print("="*60 + "\n")

    test_strip_code_fences()
    test_missing_key_never_calls_model()
    test_request_json_decodes_response()
    test_model_reused_per_system_instruction()
    test_invalid_json_raises_format_error()
    test_empty_response_raises_format_error()
    test_default_model_factory()

    print("\n" + "="*60)
    print("ALL GEMINI COLLABORATOR TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
