"""Simplified test for configuration reading."""

import os
from datetime import timedelta
from unittest.mock import patch

from reelchat.configs.config import AppConfig, get_app_config
from reelchat.configs.system import DEFAULT_ENTITY_DETECTION_PROMPT


class TestConfigSimple:
    """Test basic configuration functionality."""

    def test_static_yaml_is_loaded(self):
        config = AppConfig()

        assert config.chat.toolsets == ["tmdb", "ratings", "encyclopedia", "calendar"]
        assert config.third_party.http_timeout == timedelta(seconds=30)
        assert config.cache.key_prefix == "reelchat:movie"

    def test_env_overrides_yaml(self):
        env_vars = {
            "REELCHAT_CHAT__MAX_TOOL_ROUNDS": "3",
            "REELCHAT_CACHE__MOVIE_TTL": "PT1H",
            "REELCHAT_THIRD_PARTY__TMDB_API_KEY": "tmdb-secret",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            config = AppConfig()

        assert config.chat.max_tool_rounds == 3
        assert config.cache.movie_ttl == timedelta(hours=1)
        assert config.third_party.tmdb_api_key == "tmdb-secret"
        # untouched siblings keep their YAML values
        assert config.chat.json_mode is True

    def test_prompts_from_prompt_yml(self):
        prompts = get_app_config().prompt

        assert "calendar tools" in prompts.system_prompt
        assert prompts.entity_detection == DEFAULT_ENTITY_DETECTION_PROMPT
        assert "{query}" in prompts.entity_detection

    def test_get_app_config_rereads(self):
        assert get_app_config() is not get_app_config()
        with patch.dict(os.environ, {"REELCHAT_LLM__MODEL_NAME": "other-model"}):
            assert get_app_config().llm.model_name == "other-model"
