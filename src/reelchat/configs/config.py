"""Configuration management using pydantic-settings.

``get_app_config()`` builds a fresh ``AppConfig`` on every call so that a
mounted ConfigMap can change values without a restart.

Priority order (highest first):

1. ConfigMap YAML (path from ``REELCHAT_CONFIGMAP_FILE``)
2. Environment variables (``REELCHAT_`` prefix, ``__`` nesting)
3. ``.env`` dotenv file
4. Static YAML (``configs/config.yaml``)
5. Prompt YAML (``configs/prompt.yml``)
6. Init defaults / field defaults
7. File secrets
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .system import (
    CacheConfig,
    ChatConfig,
    LLMConfig,
    LoggingConfig,
    PromptConfig,
    ThirdPartyConfig,
    TracingConfig,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_PY_PATH = Path(__file__).resolve()
PROJECT_ROOT = CONFIG_PY_PATH.parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"

STATIC_CONFIG_FILE = CONFIG_DIR / "config.yaml"
PROMPT_CONFIG_FILE = CONFIG_DIR / "prompt.yml"

CONFIGMAP_ENV_VAR = "REELCHAT_CONFIGMAP_FILE"
_configmap_env = os.environ.get(CONFIGMAP_ENV_VAR)
CONFIGMAP_CONFIG_FILE: Optional[Path] = (
    Path(_configmap_env) if _configmap_env else None
)

DOTENV_FILE_PATH = PROJECT_ROOT / ".env"
ENV_DELIMITER = "__"
ENV_PREFIX = "REELCHAT_"

DEFAULT_ENCODING = "utf-8"

# Keys of prompt.yml copied into the ``prompt`` section.
PROMPT_KEYS = ("system_prompt", "entity_detection", "grounded_fact", "basic_fact")


# ---------------------------------------------------------------------------
# Application config
# ---------------------------------------------------------------------------


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=DOTENV_FILE_PATH,
        env_file_encoding=DEFAULT_ENCODING,
        env_nested_delimiter=ENV_DELIMITER,
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        yaml_file=STATIC_CONFIG_FILE,
        yaml_file_encoding=DEFAULT_ENCODING,
    )

    third_party: ThirdPartyConfig = Field(
        default_factory=ThirdPartyConfig,
        description="Third-party service configurations",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Chat model client settings",
    )

    chat: ChatConfig = Field(
        default_factory=ChatConfig,
        description="Turn orchestration settings",
    )

    cache: CacheConfig = Field(
        default_factory=CacheConfig,
        description="Movie metadata cache settings",
    )

    prompt: PromptConfig = Field(
        default_factory=PromptConfig,
        description="Prompt texts",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )

    tracing: TracingConfig = Field(
        default_factory=TracingConfig,
        description="OpenTelemetry settings",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = []

        # 1. ConfigMap YAML
        if CONFIGMAP_CONFIG_FILE is not None and CONFIGMAP_CONFIG_FILE.is_file():
            sources.append(
                YamlConfigSettingsSource(
                    settings_cls,
                    yaml_file=CONFIGMAP_CONFIG_FILE,
                )
            )

        # 2-3. Env vars and dotenv
        sources.append(env_settings)
        sources.append(dotenv_settings)

        # 4. Static YAML
        sources.append(YamlConfigSettingsSource(settings_cls))

        # 5. Prompt YAML
        sources.append(_PromptYamlSettingsSource(settings_cls))

        # 6-7. Init defaults and file secrets
        sources.append(init_settings)
        sources.append(file_secret_settings)

        return tuple(sources)


class _PromptYamlSettingsSource(PydanticBaseSettingsSource):
    """Loads prompt texts from ``prompt.yml`` into the ``prompt`` section."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        if not PROMPT_CONFIG_FILE.exists():
            return {}

        try:
            with open(PROMPT_CONFIG_FILE, encoding=DEFAULT_ENCODING) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            logger.warning("Could not read %s", PROMPT_CONFIG_FILE, exc_info=True)
            return {}

        if not isinstance(data, dict):
            return {}
        prompts = {k: data[k] for k in PROMPT_KEYS if isinstance(data.get(k), str)}
        return {"prompt": prompts} if prompts else {}


def get_app_config() -> AppConfig:
    """Get the application configuration (re-read on every call)."""
    return AppConfig()


def get_third_party_config() -> ThirdPartyConfig:
    return get_app_config().third_party


def get_llm_config() -> LLMConfig:
    return get_app_config().llm
