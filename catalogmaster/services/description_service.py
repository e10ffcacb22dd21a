"""AI product description service.

Asks the Gemini `generateContent` endpoint for a short sales description.
The call is optional: a missing key, an HTTP failure or an empty answer all
produce a fixed fallback sentence so that saving a product never depends on
the service being reachable.
"""
import os

import requests

from catalogmaster import config
from catalogmaster.exceptions import ExternalServiceUnavailable


MISSING_KEY_REASON = "missing API key"

PROMPT_TEMPLATE = """Write a compelling, professional, and short sales description (max 2 sentences) for a product with the following details:
Category: {category}
Brand: {brand}
Model/Type: {type}

Focus on value and features suitable for this type of product."""


def _api_key_from_env():
    for name in config.AI_API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


class DescriptionService:
    """Generates product descriptions with a fallback on failure."""

    def __init__(self, api_key=None, model=config.AI_MODEL, session=None,
                 timeout=config.AI_TIMEOUT_SECONDS):
        """Initialize DescriptionService.

        Args:
            api_key: Gemini API key. Read from the environment when None.
            model: Model name used in the endpoint URL.
            session: Optional requests.Session (or compatible) for the HTTP call.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key if api_key is not None else _api_key_from_env()
        self.model = model
        self.session = session or requests
        self.timeout = timeout

    @staticmethod
    def build_prompt(category_name, brand_name, product_type):
        return PROMPT_TEMPLATE.format(category=category_name, brand=brand_name, type=product_type)

    def request_description(self, category_name, brand_name, product_type):
        """Call the API and return the generated text ("" if the model said nothing).

        Raises:
            ExternalServiceUnavailable: On a missing key or any HTTP/network error.
        """
        if not self.api_key:
            raise ExternalServiceUnavailable("Gemini", MISSING_KEY_REASON)

        url = config.AI_ENDPOINT.format(model=self.model)
        body = {
            "contents": [{
                "parts": [{"text": self.build_prompt(category_name, brand_name, product_type)}]
            }]
        }
        try:
            response = self.session.post(
                url, params={"key": self.api_key}, json=body, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ExternalServiceUnavailable("Gemini", str(e))

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data):
        parts = []
        for candidate in data.get("candidates") or []:
            content = candidate.get("content") or {}
            for part in content.get("parts") or []:
                if part.get("text"):
                    parts.append(part["text"])
            if parts:
                break
        return "".join(parts).strip()

    def generate(self, category_name, brand_name, product_type):
        """Return a description, or a fallback sentence if the service is unavailable."""
        try:
            text = self.request_description(category_name, brand_name, product_type)
        except ExternalServiceUnavailable as e:
            if e.reason == MISSING_KEY_REASON:
                print("No API key found for Gemini.")
                return config.AI_FALLBACK_MISSING_KEY
            print(f"Gemini API Error: {e}")
            return config.AI_FALLBACK_FAILED

        return text or config.AI_FALLBACK_EMPTY
