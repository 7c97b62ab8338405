"""
Provider factory for creating AI provider instances

The single place where provider selection and credential validation happen
together: a provider is only ever returned after validate_config() passed.
"""

from typing import Optional, Dict, Any, List, Type

from .base import AIProvider
from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider
from .tool_translator import ProviderType
from ..config import ChatFlowConfig, DEFAULT_PROVIDER, get_config
from ..exceptions import ConfigurationError, UnsupportedProviderError, setup_logger

logger = setup_logger(__name__)


class ProviderFactory:
    """Factory for creating AI provider instances"""

    # Closed set of backends
    _providers: Dict[str, Type[AIProvider]] = {
        ProviderType.ANTHROPIC.value: AnthropicProvider,
        ProviderType.OPENAI.value: OpenAIProvider,
        ProviderType.GEMINI.value: GeminiProvider,
    }

    @classmethod
    def resolve_name(cls, provider_name: Optional[str] = None,
                     config: Optional[ChatFlowConfig] = None) -> str:
        """
        Resolve which provider to use

        Explicit argument, then the configured provider, then DEFAULT_PROVIDER.
        Empty values fall through to the next source.
        """
        configured = config.provider if config is not None else None
        for candidate in (provider_name, configured, DEFAULT_PROVIDER):
            if candidate and candidate.strip():
                return candidate.strip().lower()
        return DEFAULT_PROVIDER

    @classmethod
    def create(
        cls,
        provider_name: Optional[str] = None,
        config: Optional[ChatFlowConfig] = None,
        **kwargs
    ) -> AIProvider:
        """
        Create a validated provider instance

        Args:
            provider_name: Provider type (anthropic, openai, gemini)
            config: Explicit configuration (defaults to the global config)
            **kwargs: Overrides passed to the provider constructor
                - api_key, model_name, max_tokens, timeout
                - client: Pre-built SDK client
                - id_generator: Tool-use id strategy (gemini)

        Returns:
            Provider instance whose configuration has been validated

        Raises:
            UnsupportedProviderError: If the provider is unknown
            ConfigurationError: If the provider's credential is missing
        """
        if config is None:
            config = get_config()

        name = cls.resolve_name(provider_name, config)

        if name not in cls._providers:
            raise UnsupportedProviderError(name, cls.supported_providers())

        provider_class = cls._providers[name]

        params: Dict[str, Any] = {
            "api_key": config.get_api_key(name),
            "model_name": config.get_model(name),
            "max_tokens": config.max_tokens,
            "timeout": config.timeout,
        }
        params.update(kwargs)

        logger.debug(f"Creating {name} provider with model {params['model_name']}")
        provider = provider_class(**params)

        try:
            provider.validate_config()
        except ConfigurationError as e:
            logger.error(f"AI provider {name} is not configured: {e.message}")
            raise ConfigurationError(
                f'AI provider "{provider.name}" configuration error: {e.message}',
                provider=provider.name,
                details=e.details,
            ) from e

        logger.info(f"AI Provider: {provider.name}")
        return provider

    @classmethod
    def supported_providers(cls) -> List[str]:
        """
        Get the known provider identifiers

        Returns:
            Provider names in declaration order
        """
        return list(cls._providers.keys())

    @classmethod
    def list_providers(cls) -> Dict[str, Type[AIProvider]]:
        """
        Get all registered providers

        Returns:
            Dictionary mapping provider names to provider classes
        """
        return cls._providers.copy()

    @classmethod
    def is_provider_available(cls, provider_name: str) -> bool:
        """
        Check if a provider is known

        Args:
            provider_name: Name of the provider to check
        """
        return bool(provider_name) and provider_name.strip().lower() in cls._providers

    @classmethod
    def get_provider_info(cls, provider_name: str) -> Optional[Dict[str, Any]]:
        """
        Get information about a provider

        Args:
            provider_name: Name of the provider

        Returns:
            Dictionary with provider information or None if not found
        """
        if not cls.is_provider_available(provider_name):
            return None

        provider_class = cls._providers[provider_name.strip().lower()]

        return {
            "name": provider_class.name,
            "class": provider_class.__name__,
            "default_model": provider_class.default_model,
            "api_key_env_var": provider_class.api_key_env_var,
            "max_tool_results_per_turn": provider_class.max_tool_results_per_turn,
        }
