from abc import ABC, abstractmethod


class BaseExtractionClient(ABC):
    """Transport to a chat model that can answer in a constrained JSON shape."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        """Send one system+user exchange and return the raw assistant text.

        The text is expected, not guaranteed, to match ``json_schema``; callers
        parse and validate it.

        Raises:
            ExtractionError: on timeouts, network and provider failures, or an empty answer.
        """
