from typing import ClassVar

from docstruct.config.settings import Settings
from docstruct.llm.example_client_adapter import ExampleClientAdapter
from docstruct.llm.openai_client_adapter import OpenAIClientAdapter
from docstruct.llm.requester import ModelRequester
from docstruct.schema.registry import SchemaRegistry


class ModelRequesterFactory:
    """Creates a ModelRequester wired to the configured provider."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings, registry: SchemaRegistry) -> ModelRequester:
        provider = settings.llm_provider.lower()
        if provider == "example":
            return ModelRequester(
                client=ExampleClientAdapter(),
                registry=registry,
                model="example",
                temperature=0.0,
                target_language=settings.llm_target_language,
            )
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=cls._resolve_timeout_seconds(provider, settings),
            base_url=cls._resolve_base_url(provider, settings),
        )
        return ModelRequester(
            client=client,
            registry=registry,
            model=cls._resolve_model_name(provider, settings),
            temperature=settings.llm_temperature,
            target_language=settings.llm_target_language,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.llm_openai_compatible_base_url.strip()
            if not url:
                raise ValueError(
                    "llm_openai_compatible_base_url is required for "
                    "llm_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown LLM provider '{provider}'. Choose from: {supported}")

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.llm_openai_api_key,
            "openai_compatible": settings.llm_openai_compatible_api_key,
            "openrouter": settings.llm_openrouter_api_key,
            "deepseek": settings.llm_deepseek_api_key,
            "ollama": settings.llm_ollama_api_key,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_model_name(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.llm_openai_model_name,
            "openai_compatible": settings.llm_openai_compatible_model_name,
            "openrouter": settings.llm_openrouter_model_name,
            "deepseek": settings.llm_deepseek_model_name,
            "ollama": settings.llm_ollama_model_name,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_timeout_seconds(cls, provider: str, settings: Settings) -> int:
        key_map = {
            "openai": settings.llm_openai_timeout_seconds,
            "openai_compatible": settings.llm_openai_compatible_timeout_seconds,
            "openrouter": settings.llm_openrouter_timeout_seconds,
            "deepseek": settings.llm_deepseek_timeout_seconds,
            "ollama": settings.llm_ollama_timeout_seconds,
        }
        return key_map.get(provider, 60) or 60
