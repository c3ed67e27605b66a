"""Configuration management for debrief."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Built-in defaults
DEFAULT_SYSTEM_PROMPT = """You are an assistant that turns meeting transcripts and notes into
clear, well-organized meeting notes. Be precise and concise. Only report what was
actually discussed; do not invent decisions, owners, or dates."""

RESUME_POLICIES = ("failed", "pending")


def _resolve_prompt(env_var_name: str, default: str) -> str:
    """
    Resolve a prompt value from environment variable.

    If env var is set to a file path that exists, read its contents.
    Otherwise use the string value directly.
    If unset, use the provided default.
    """
    value = os.getenv(env_var_name)
    if value is None:
        return default

    # Check if it's a file path that exists
    path = Path(value).expanduser()
    if path.exists() and path.is_file():
        return path.read_text()

    return value


def _parse_bool(value: str | None) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return False
    return value.lower() in ("true", "1", "yes", "on")


def _parse_policy(value: str | None) -> str:
    if value is None:
        return "failed"
    policy = value.strip().lower()
    if policy not in RESUME_POLICIES:
        logger.warning(f"Unknown RESUME_POLICY {value!r}, using 'failed'")
        return "failed"
    return policy


@dataclass
class Config:
    """Configuration for debrief."""

    gateway_model: str = "lfm2-1.2b"
    gateway_url: str = "http://localhost:8800/v1"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    completion_timeout: float = 120.0
    store_dir: str = "./meetings/"
    output_dir: str = "./output/"
    templates_path: str = ""
    deferred_task_name: str = "debrief.processing"
    deferred_budget: float = 30.0
    resume_policy: str = "failed"
    verbose: bool = False


def load_config() -> Config:
    """
    Load configuration from environment variables and .env file.

    Returns:
        Config instance with all settings loaded.
    """
    load_dotenv()

    config = Config(
        gateway_model=os.getenv("GATEWAY_MODEL", "lfm2-1.2b"),
        gateway_url=os.getenv("GATEWAY_URL", "http://localhost:8800/v1"),
        completion_timeout=float(os.getenv("COMPLETION_TIMEOUT", "120")),
        store_dir=os.getenv("STORE_DIR", "./meetings/"),
        output_dir=os.getenv("OUTPUT_DIR", "./output/"),
        templates_path=os.getenv("TEMPLATES_PATH", ""),
        deferred_task_name=os.getenv("DEFERRED_TASK_NAME", "debrief.processing"),
        deferred_budget=float(os.getenv("DEFERRED_BUDGET", "30")),
        resume_policy=_parse_policy(os.getenv("RESUME_POLICY")),
        verbose=_parse_bool(os.getenv("VERBOSE")),
    )

    # Resolve prompt (file path vs inline string)
    config.system_prompt = _resolve_prompt("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT)

    return config
