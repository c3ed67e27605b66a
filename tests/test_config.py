"""Tests for config module."""

import os
import tempfile

import pytest

from debrief.config import DEFAULT_SYSTEM_PROMPT, Config, load_config

ENV_KEYS = [
    "GATEWAY_MODEL",
    "GATEWAY_URL",
    "SYSTEM_PROMPT",
    "COMPLETION_TIMEOUT",
    "STORE_DIR",
    "OUTPUT_DIR",
    "TEMPLATES_PATH",
    "DEFERRED_TASK_NAME",
    "DEFERRED_BUDGET",
    "RESUME_POLICY",
    "VERBOSE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every debrief variable and keep .env files out of the way."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("debrief.config.load_dotenv", lambda: None)
    return monkeypatch


class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_config_values(self):
        """Verify default Config dataclass values."""
        config = Config()
        assert config.gateway_model == "lfm2-1.2b"
        assert config.gateway_url == "http://localhost:8800/v1"
        assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert config.completion_timeout == 120.0
        assert config.store_dir == "./meetings/"
        assert config.output_dir == "./output/"
        assert config.templates_path == ""
        assert config.deferred_task_name == "debrief.processing"
        assert config.deferred_budget == 30.0
        assert config.resume_policy == "failed"
        assert config.verbose is False


class TestLoadConfigDefaults:
    """Test load_config() with no environment variables set."""

    def test_load_config_returns_config_instance(self, clean_env):
        assert isinstance(load_config(), Config)

    def test_load_config_default_values(self, clean_env):
        """Verify load_config() matches the dataclass defaults."""
        assert load_config() == Config()


class TestEnvVarOverrides:
    """Test that environment variables override defaults."""

    def test_gateway_overrides(self, clean_env):
        clean_env.setenv("GATEWAY_MODEL", "qwen3-4b")
        clean_env.setenv("GATEWAY_URL", "http://remote:9000/v1")
        config = load_config()
        assert config.gateway_model == "qwen3-4b"
        assert config.gateway_url == "http://remote:9000/v1"

    def test_numeric_overrides(self, clean_env):
        clean_env.setenv("COMPLETION_TIMEOUT", "45")
        clean_env.setenv("DEFERRED_BUDGET", "12.5")
        config = load_config()
        assert config.completion_timeout == 45.0
        assert config.deferred_budget == 12.5

    def test_path_overrides(self, clean_env):
        clean_env.setenv("STORE_DIR", "/data/meetings")
        clean_env.setenv("OUTPUT_DIR", "/data/out")
        clean_env.setenv("TEMPLATES_PATH", "~/templates.yml")
        config = load_config()
        assert config.store_dir == "/data/meetings"
        assert config.output_dir == "/data/out"
        assert config.templates_path == "~/templates.yml"

    def test_deferred_task_name_override(self, clean_env):
        clean_env.setenv("DEFERRED_TASK_NAME", "com.example.notes")
        assert load_config().deferred_task_name == "com.example.notes"

    @pytest.mark.parametrize("value, expected", [("pending", "pending"), ("FAILED", "failed"), ("retry", "failed")])
    def test_resume_policy(self, clean_env, value, expected):
        clean_env.setenv("RESUME_POLICY", value)
        assert load_config().resume_policy == expected

    @pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("on", True), ("no", False)])
    def test_verbose(self, clean_env, value, expected):
        clean_env.setenv("VERBOSE", value)
        assert load_config().verbose is expected


class TestPromptFileResolution:
    """Test prompt file path vs inline string resolution."""

    def test_system_prompt_from_file(self, clean_env):
        """Verify system prompt loaded from file if path exists."""
        with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".txt") as f:
            f.write("Custom system prompt from file")
            temp_path = f.name

        try:
            clean_env.setenv("SYSTEM_PROMPT", temp_path)
            config = load_config()
            assert config.system_prompt == "Custom system prompt from file"
        finally:
            os.unlink(temp_path)

    def test_system_prompt_inline_string(self, clean_env):
        """Verify system prompt used as inline string if not a file."""
        clean_env.setenv("SYSTEM_PROMPT", "This is an inline system prompt")
        assert load_config().system_prompt == "This is an inline system prompt"
