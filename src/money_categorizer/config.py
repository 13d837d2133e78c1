"""
Configuration loaded from environment variables (and a local .env file)
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError


# Load environment variables
load_dotenv()

DEFAULT_PROMPT_CMD = "ollama run llama3.2"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_BATCH_SIZE = 50
DEFAULT_EXAMPLE_LIMIT = 10

LLM_BACKENDS = ('command', 'anthropic')


@dataclass
class Settings:
    """Runtime settings for the categorizer"""
    db_host: str = 'localhost'
    db_port: int = 5432
    db_name: str = 'money_db'
    db_user: str = 'money_user'
    db_password: str = 'money_password_local_dev'

    llm_backend: str = 'command'
    llm_prompt_cmd: str = DEFAULT_PROMPT_CMD
    llm_model: str = DEFAULT_MODEL
    anthropic_api_key: Optional[str] = None

    batch_size: int = DEFAULT_BATCH_SIZE
    example_limit: int = DEFAULT_EXAMPLE_LIMIT


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_settings() -> Settings:
    """
    Build settings from the environment

    Returns:
        Settings populated from DB_*, LLM_* and ANTHROPIC_API_KEY variables

    Raises:
        ConfigError: If a value cannot be parsed or is out of range
    """
    backend = os.getenv('LLM_BACKEND', 'command').strip().lower()
    if backend not in LLM_BACKENDS:
        raise ConfigError(
            f"LLM_BACKEND must be one of {', '.join(LLM_BACKENDS)}, got {backend!r}"
        )

    return Settings(
        db_host=os.getenv('DB_HOST', 'localhost'),
        db_port=_int_env('DB_PORT', 5432, minimum=1),
        db_name=os.getenv('DB_NAME', 'money_db'),
        db_user=os.getenv('DB_USER', 'money_user'),
        db_password=os.getenv('DB_PASSWORD', 'money_password_local_dev'),
        llm_backend=backend,
        llm_prompt_cmd=os.getenv('LLM_PROMPT_CMD') or DEFAULT_PROMPT_CMD,
        llm_model=os.getenv('LLM_MODEL') or DEFAULT_MODEL,
        anthropic_api_key=os.getenv('ANTHROPIC_API_KEY') or None,
        batch_size=_int_env('LLM_BATCH_SIZE', DEFAULT_BATCH_SIZE, minimum=1),
        example_limit=_int_env('LLM_EXAMPLE_LIMIT', DEFAULT_EXAMPLE_LIMIT),
    )
