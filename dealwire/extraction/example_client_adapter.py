"""Offline extraction client adapter.

Useful for local development and as a template for new provider adapters:
implement BaseExtractionClient and register the provider in ExtractorFactory.
"""

import json
from typing import ClassVar

from dealwire.extraction.client_base import BaseExtractionClient


class ExampleClientAdapter(BaseExtractionClient):
    """Returns a fixed "no deal" extraction without any network call."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "deal_detected": False,
        "deal_type": None,
        "entities": {
            "general_partners": [],
            "funds": [],
            "portfolio_companies": [],
            "limited_partners": [],
            "service_providers": [],
        },
        "amount": {"value": None, "currency": None},
        "geography": {"country": None, "city": None},
        "announcement_date": None,
        "confidence_score": 0,
        "reasoning": "Offline example adapter; no analysis performed.",
    }

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self.DEFAULT_RESPONSE)
