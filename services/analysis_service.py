"""
Analysis Service for Gemini hazard recognition and the recycling assistant.
"""
import base64
import logging
import requests
from typing import Dict, Any, List

import config.settings as settings
from services.exceptions import Unavailable

logger = logging.getLogger(__name__)


class AnalysisService:
    """Service for generative analysis calls against the Gemini REST API."""

    def __init__(self, prompt_service):
        """Initialize analysis service with prompt service dependency."""
        self.api_key = settings.GEMINI_API_KEY
        self.model = settings.GEMINI_MODEL
        self.api_url = settings.GEMINI_API_URL.format(model=self.model)
        self.timeout = settings.GEMINI_TIMEOUT
        self.fallback_text = settings.NO_AI_RESPONSE_TEXT
        self.prompt_service = prompt_service

    def test_connection(self) -> bool:
        """Test if the Gemini endpoint answers for the configured key."""
        if not self.api_key:
            return False
        try:
            response = requests.get(
                f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}",
                params={'key': self.api_key},
                timeout=10
            )
            return response.status_code == 200
        except requests.RequestException as e:
            logger.error(f"Gemini connection failed: {e}")
            return False

    def analyze_image(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Ask the model to recognize the item and list its e-waste hazards.

        Args:
            image_bytes: Raw image content
            mime_type: Image MIME type

        Returns:
            Analysis text, or the fallback text when the model returns nothing

        Raises:
            Unavailable: Endpoint unreachable, timed out or returned an error
        """
        parts = [
            {'text': self.prompt_service.get_hazard_analysis_prompt()},
            {
                'inline_data': {
                    'mime_type': mime_type,
                    'data': base64.b64encode(image_bytes).decode('ascii')
                }
            }
        ]
        return self._generate(parts)

    def ask(self, question: str) -> str:
        """Answer a free-text recycling question."""
        parts = [{'text': self.prompt_service.get_assistant_prompt(question)}]
        return self._generate(parts)

    def _generate(self, parts: List[Dict[str, Any]]) -> str:
        payload = {'contents': [{'parts': parts}]}

        logger.info(f"Sending request to Gemini with model: {self.model}")

        try:
            response = requests.post(
                self.api_url,
                params={'key': self.api_key},
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Error calling Gemini: {e}")
            raise Unavailable('Analysis service is unavailable', collaborator='gemini')

        logger.info(f"Gemini response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code}")
            logger.error(f"Response content: {response.text[:500]}")
            raise Unavailable(
                'Analysis service returned an error',
                collaborator='gemini',
                status_code=response.status_code
            )

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from Gemini: {e}")
            raise Unavailable('Analysis service returned an invalid response', collaborator='gemini')

        return self._extract_text(result)

    def _extract_text(self, result: Dict[str, Any]) -> str:
        """First candidate text, or the fallback text when empty."""
        candidates = result.get('candidates') or [{}]
        content_parts = (candidates[0].get('content') or {}).get('parts') or [{}]
        text = (content_parts[0].get('text') or '').strip()

        if not text:
            logger.warning("Gemini returned an empty result, storing fallback text")
            return self.fallback_text
        return text
