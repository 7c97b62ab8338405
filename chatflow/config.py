"""
Configuration management for chatflow

Provider selection, credentials and model settings. Non-secret settings may
come from a YAML file; the environment is read once and overlaid on top, and
the resulting ChatFlowConfig is passed explicitly to the provider factory.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
from dataclasses import dataclass, field
from chatflow.exceptions import ConfigurationError, setup_logger

logger = setup_logger(__name__)

DEFAULT_PROVIDER = "anthropic"
PROVIDER_ENV_VAR = "AI_PROVIDER"


@dataclass
class ProviderConfig:
    """Configuration for a specific provider"""
    name: str  # Provider name
    api_key_env_var: str  # Environment variable for API key
    default_model: str  # Default model to use
    api_key_url: str  # Where to obtain a key
    model_env_var: Optional[str] = None  # Environment variable overriding the model


def _default_providers() -> Dict[str, ProviderConfig]:
    """Registry read from the provider classes, which own these settings"""
    # Imported lazily: the providers package imports this module
    from chatflow.providers.provider_factory import ProviderFactory

    return {
        name: ProviderConfig(
            name=name,
            api_key_env_var=provider_class.api_key_env_var,
            default_model=provider_class.default_model,
            api_key_url=provider_class.api_key_url,
            model_env_var=provider_class.model_env_var or None,
        )
        for name, provider_class in ProviderFactory.list_providers().items()
    }


@dataclass
class ChatFlowConfig:
    """Main configuration class"""
    provider: str = DEFAULT_PROVIDER  # Active provider: anthropic, openai, gemini
    max_tokens: int = 4096
    timeout: float = 60.0

    # Provider registry
    providers: Dict[str, ProviderConfig] = field(default_factory=_default_providers)

    # Model overrides per provider (falls back to ProviderConfig.default_model)
    models: Dict[str, str] = field(default_factory=dict)

    # API keys are never written to the config file
    api_keys: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, excluding API keys"""
        return {
            "provider": self.provider,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "models": dict(self.models),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatFlowConfig':
        """Create config from dictionary"""
        return cls(
            provider=data.get("provider") or DEFAULT_PROVIDER,
            max_tokens=data.get("max_tokens", 4096),
            timeout=data.get("timeout", 60.0),
            models=dict(data.get("models") or {}),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 base: Optional['ChatFlowConfig'] = None) -> 'ChatFlowConfig':
        """Build a config from the process environment

        Args:
            environ: Mapping to read instead of os.environ
            base: Config whose values are overlaid (defaults to a fresh one)

        Returns:
            New ChatFlowConfig
        """
        environ = os.environ if environ is None else environ
        config = base if base is not None else cls()

        provider = (environ.get(PROVIDER_ENV_VAR) or "").strip()
        if provider:
            config.provider = provider

        for name, provider_config in config.providers.items():
            api_key = environ.get(provider_config.api_key_env_var)
            if api_key:
                config.api_keys[name] = api_key
            if provider_config.model_env_var:
                model = environ.get(provider_config.model_env_var)
                if model:
                    config.models[name] = model

        return config

    def get_api_key(self, provider: str) -> Optional[str]:
        return self.api_keys.get(provider.lower())

    def get_model(self, provider: str) -> Optional[str]:
        provider = provider.lower()
        if provider in self.models:
            return self.models[provider]
        provider_config = self.providers.get(provider)
        return provider_config.default_model if provider_config else None


class ConfigManager:
    """Manages configuration loading, saving, and validation"""

    DEFAULT_CONFIG_DIR = Path.home() / ".chatflow"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

    def __init__(self, config_path: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize config manager

        Args:
            config_path: Path to config file (defaults to ~/.chatflow/config.yaml)
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_FILE
        self.environ = environ
        self.config: ChatFlowConfig = ChatFlowConfig()

    def load(self) -> ChatFlowConfig:
        """Load configuration from file, then overlay the environment

        A missing file is not an error; defaults are used.

        Returns:
            ChatFlowConfig object

        Raises:
            ConfigurationError: If config file is invalid
        """
        config = ChatFlowConfig()

        if self.config_path.exists():
            logger.info(f"Loading configuration from {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError("Invalid YAML in config file", details=str(e))
            except OSError as e:
                raise ConfigurationError(f"Failed to read config file {self.config_path}",
                                         details=str(e))

            if data is None:
                logger.warning("Config file is empty, using defaults")
            elif not isinstance(data, dict):
                raise ConfigurationError(
                    f"Config file {self.config_path} must contain a mapping"
                )
            else:
                try:
                    config = ChatFlowConfig.from_dict(data)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError("Invalid config values", details=str(e))
        else:
            logger.debug(f"Config file not found at {self.config_path}, using defaults")

        self.config = ChatFlowConfig.from_env(self.environ, base=config)
        return self.config

    def save(self, config: Optional[ChatFlowConfig] = None) -> None:
        """Save configuration to file (API keys are never written)

        Raises:
            ConfigurationError: If saving fails
        """
        if config:
            self.config = config

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(self.config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to save config to {self.config_path}",
                                     details=str(e))

        logger.info(f"Configuration saved to {self.config_path}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation path

        Args:
            key_path: Dot-separated path (e.g., "models.openai")
            default: Default value if not found
        """
        value: Any = self.config
        for key in key_path.split('.'):
            if isinstance(value, dict):
                if key not in value:
                    return default
                value = value[key]
            elif hasattr(value, key):
                value = getattr(value, key)
            else:
                return default
        return value

    def validate(self) -> bool:
        """Validate current configuration

        Returns:
            True if valid

        Raises:
            ConfigurationError: If validation fails
        """
        if self.config.max_tokens < 1:
            raise ConfigurationError("max_tokens must be at least 1")

        if self.config.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        unknown = sorted(set(self.config.models) - set(self.config.providers))
        if unknown:
            raise ConfigurationError(f"Model overrides for unknown providers: {', '.join(unknown)}")

        return True

    def get_api_key(self, provider: str) -> Optional[str]:
        """Get API key for provider

        Args:
            provider: Provider name (anthropic, openai, gemini)

        Returns:
            API key or None
        """
        provider = provider.lower()
        if provider not in self.config.providers:
            logger.warning(f"Unknown provider: {provider}")
            return None
        return self.config.get_api_key(provider)

    def get_model(self, provider: str) -> Optional[str]:
        """Get the model for provider (override or default), None if unknown"""
        return self.config.get_model(provider)

    def get_provider_config(self, provider: str) -> Optional[ProviderConfig]:
        return self.config.providers.get(provider.lower())

    def display_config(self) -> str:
        """Get formatted configuration display"""
        return yaml.dump(self.config.to_dict(), default_flow_style=False, sort_keys=False)


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global config manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
        _config_manager.load()
    return _config_manager


def get_config() -> ChatFlowConfig:
    """Get current configuration"""
    return get_config_manager().config


def reset_config_manager() -> None:
    """Forget the global config manager so the next access reloads it"""
    global _config_manager
    _config_manager = None
