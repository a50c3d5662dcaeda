from dataclasses import dataclass
from typing import ClassVar

from dealwire.config.settings import Settings
from dealwire.extraction.base import BaseExtractor
from dealwire.extraction.example_client_adapter import ExampleClientAdapter
from dealwire.extraction.extractor import Extractor
from dealwire.extraction.openai_client_adapter import OpenAIClientAdapter
from dealwire.logging.logger import Log


@dataclass(frozen=True)
class ProviderProfile:
    base_url: str | None
    needs_api_key: bool = True


class ExtractorFactory:
    """Builds the extractor selected by ``extraction_provider``.

    ``example`` is the offline adapter, ``openai_compatible`` takes any base URL,
    and every entry of ``PROVIDERS`` speaks the OpenAI chat API.
    """

    OFFLINE_PROVIDER: ClassVar[str] = "example"
    CUSTOM_PROVIDER: ClassVar[str] = "openai_compatible"
    PROVIDERS: ClassVar[dict[str, ProviderProfile]] = {
        "openai": ProviderProfile(base_url=None),
        "openrouter": ProviderProfile(base_url="https://openrouter.ai/api/v1"),
        "groq": ProviderProfile(base_url="https://api.groq.com/openai/v1"),
        "together": ProviderProfile(base_url="https://api.together.xyz/v1"),
        "deepseek": ProviderProfile(base_url="https://api.deepseek.com/v1"),
        "ollama": ProviderProfile(base_url="http://localhost:11434/v1", needs_api_key=False),
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseExtractor:
        provider = settings.extraction_provider.strip().lower()
        if provider == cls.OFFLINE_PROVIDER:
            Log.warning("Using the offline example extractor; no documents will be analysed")
            return Extractor(client=ExampleClientAdapter(), model="example")

        base_url = cls._resolve_base_url(provider, settings)
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=settings.extraction_timeout_seconds,
            base_url=base_url,
            max_retries=settings.extraction_max_retries,
        )
        Log.info(
            "Extractor configured",
            provider=provider,
            model=settings.extraction_model_name,
            base_url=base_url or "default",
        )
        return Extractor(
            client=client,
            model=settings.extraction_model_name,
            temperature=settings.extraction_temperature,
        )

    @classmethod
    def supported_providers(cls) -> list[str]:
        return [cls.OFFLINE_PROVIDER, cls.CUSTOM_PROVIDER, *sorted(cls.PROVIDERS)]

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        configured = (settings.extraction_base_url or "").strip() or None
        if provider == cls.CUSTOM_PROVIDER:
            if configured is None:
                raise ValueError(
                    f"extraction_base_url is required for extraction_provider={provider}"
                )
            return configured
        profile = cls.PROVIDERS.get(provider)
        if profile is None:
            raise ValueError(
                f"Unknown extraction provider '{provider}'. "
                f"Choose from: {cls.supported_providers()}"
            )
        return configured or profile.base_url

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key = settings.extraction_api_key.strip()
        if key:
            return key
        profile = cls.PROVIDERS.get(provider)
        if profile is not None and not profile.needs_api_key:
            # The SDK refuses an empty key even when the server ignores it.
            return provider
        raise ValueError(f"extraction_api_key is required for extraction_provider={provider}")
