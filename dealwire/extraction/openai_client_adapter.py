from typing import Any

import httpx
import openai

from dealwire.extraction.client_base import BaseExtractionClient
from dealwire.extraction.exceptions import ExtractionError
from dealwire.logging.logger import Log


class OpenAIClientAdapter(BaseExtractionClient):
    """Chat-completions client for OpenAI and OpenAI-compatible providers.

    Requests strict JSON-schema output. Every transport or provider failure is
    raised as ExtractionError with the SDK exception chained.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        max_retries: int = 0,
        schema_name: str = "deal_extraction",
    ) -> None:
        self._schema_name = schema_name
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=max_retries,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        response = self._send(
            model=model,
            temperature=temperature,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": self._schema_name,
                    "strict": True,
                    "schema": json_schema,
                },
            },
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return self._first_content(response)

    def _send(self, **request: Any) -> Any:
        try:
            return self._client.chat.completions.create(**request)
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise ExtractionError(f"AI provider timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise ExtractionError(f"AI provider network error: {exc}") from exc
        except openai.RateLimitError as exc:
            raise ExtractionError(f"AI provider rate limited the request: {exc}") from exc
        except openai.APIError as exc:
            raise ExtractionError(f"AI provider API error: {exc}") from exc

    @staticmethod
    def _first_content(response: Any) -> str:
        if not response.choices:
            raise ExtractionError("AI returned no choices")
        usage = getattr(response, "usage", None)
        if usage is not None:
            Log.debug(
                "AI usage",
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
            )
        choice = response.choices[0]
        if choice.finish_reason == "length":
            raise ExtractionError("AI response was cut off at the token limit")
        if choice.message.content is None:
            raise ExtractionError("AI returned empty response")
        return choice.message.content
