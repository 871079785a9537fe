"""
Gemini Collaborator Module
==========================
Sends built ModelRequests to Google Gemini and decodes the JSON reply.

This client only transports: it does not repair or validate entities.
Missing credentials are reported with CollaboratorUnavailableError so the
generation services can route to the fallback without a network call.
"""

import json
import logging
from typing import Any, Dict, Optional

import google.generativeai as genai
from dotenv import load_dotenv

from ..config import GeminiConfig, get_config
from ..exceptions import CollaboratorUnavailableError, ResponseFormatError
from .request_builder import ModelRequest

# Load environment variables (for API key fallback)
load_dotenv()

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove markdown fences some models wrap around JSON."""
    return text.replace('```json', '').replace('```', '').strip()


class GeminiCollaborator:
    """
    Request/response client for the generative model.

    The underlying GenerativeModel is created lazily per system instruction
    so an unconfigured collaborator never touches the SDK.
    """

    def __init__(self, gemini_config: Optional[GeminiConfig] = None, model_factory=None):
        """
        Args:
            gemini_config: Overrides the global GeminiConfig
            model_factory: Callable(system_instruction) -> model with a
                generate_content() method; defaults to genai.GenerativeModel
        """
        self.config = gemini_config or get_config().gemini
        self._model_factory = model_factory or self._create_model
        self._models: Dict[Optional[str], Any] = {}
        self._configured = False

    @property
    def is_available(self) -> bool:
        return self.config.is_configured

    def _create_model(self, system_instruction: Optional[str]):
        if not self._configured:
            genai.configure(api_key=self.config.api_key)
            self._configured = True

        model = genai.GenerativeModel(
            self.config.model_name,
            system_instruction=system_instruction,
            generation_config={
                'temperature': self.config.temperature,
                'top_k': self.config.top_k,
                'top_p': self.config.top_p,
                'max_output_tokens': self.config.max_output_tokens,
            }
        )
        logger.info(f"Initialized Gemini model: {self.config.model_name}")
        return model

    def _model_for(self, system_instruction: Optional[str]):
        if system_instruction not in self._models:
            self._models[system_instruction] = self._model_factory(system_instruction)
        return self._models[system_instruction]

    def request_json(self, request: ModelRequest) -> Any:
        """
        Send a request and return the decoded JSON value.

        Raises:
            CollaboratorUnavailableError: No API key configured
            ResponseFormatError: Empty or non-JSON response
            Exception: Anything the SDK raises (network, auth, quota)
        """
        if not self.is_available:
            raise CollaboratorUnavailableError(
                "No Gemini API key configured",
                error_code="missing_credentials"
            )

        model = self._model_for(request.system_instruction)
        logger.info(f"Sending {request.kind} request", extra=request.summary())

        response = model.generate_content(
            request.to_contents(),
            generation_config={
                'response_mime_type': 'application/json',
                'response_schema': request.response_schema,
            }
        )

        text = strip_code_fences(response.text or "")
        if not text:
            raise ResponseFormatError("Empty response from Gemini", error_code="empty_response")

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing Gemini response: {text[:500]}")
            raise ResponseFormatError(
                f"Invalid JSON from Gemini: {e}",
                error_code="invalid_json"
            ) from e
