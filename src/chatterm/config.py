"""
Configuration and logging setup for chatterm.

Values come from the JSON config file, overridden by environment variables
(a ``.env`` file in the working directory is loaded first).
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from getpass import getpass
from pathlib import Path
from typing import Callable, Optional

from dotenv import find_dotenv, load_dotenv
from textual.logging import TextualHandler

from chatterm.core.errors import ConfigError

DEFAULT_INITIAL_PROMPT = (
    "You are Assistant, a very enthusiastic chatbot. You are chatting with a user. "
    "If you don't know the answer to something, say \"I don't know\"."
)
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

_ENV_OVERRIDES = {
    'OPENAI_API_KEY': 'openai_api_key',
    'OPENAI_MODEL': 'openai_model',
    'OPENAI_BASE_URL': 'base_url',
    'CHATTERM_MAX_TOKENS': 'max_tokens',
}


@dataclass
class ChatTermConfig:
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    initial_prompt: str = DEFAULT_INITIAL_PROMPT
    max_tokens: int = 2000
    base_url: Optional[str] = None
    request_timeout: float = 60


def default_config_path() -> Path:
    base = os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "chatterm" / "config.json"


def _coerce_budget(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"max_tokens must be an integer, got {value!r}")
    try:
        budget = int(value)
    except ValueError:
        raise ConfigError(f"max_tokens must be an integer, got {value!r}")
    if budget <= 0:
        raise ConfigError(f"max_tokens must be positive, got {value!r}")
    return budget


def load_config(path: Optional[Path] = None) -> ChatTermConfig:
    """
    Load the configuration file (if any) and apply environment overrides.

    Raises:
        ConfigError: the file is unreadable JSON, holds unknown keys or an
            invalid token budget.
    """
    load_dotenv(find_dotenv(usecwd=True))
    path = path or default_config_path()
    values: dict = {}

    if path.exists():
        try:
            values = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(values, dict):
            raise ConfigError(f"config {path} must hold a JSON object")
        known = {f.name for f in fields(ChatTermConfig)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"unknown config keys in {path}: {', '.join(sorted(unknown))}")

    for env_name, key in _ENV_OVERRIDES.items():
        if os.getenv(env_name):
            values[key] = os.environ[env_name]

    if 'max_tokens' in values:
        values['max_tokens'] = _coerce_budget(values['max_tokens'])
    return ChatTermConfig(**values)


def save_config(config: ChatTermConfig, path: Optional[Path] = None) -> Path:
    path = path or default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(config), indent=2), encoding='utf-8')
    # holds the API key
    path.chmod(0o600)
    return path


def reconfigure(
    config: ChatTermConfig,
    ask: Callable[[str], str] = input,
    ask_secret: Callable[[str], str] = getpass,
) -> ChatTermConfig:
    """Prompt for the main settings, keeping current values on empty answers."""
    key_hint = "(keep current) " if config.openai_api_key else ""
    api_key = ask_secret(f"OpenAI API key {key_hint}: ").strip() or config.openai_api_key
    model = ask(f"Model [{config.openai_model}]: ").strip() or config.openai_model
    budget = ask(f"Token budget [{config.max_tokens}]: ").strip()

    config.openai_api_key = api_key
    config.openai_model = model
    if budget:
        config.max_tokens = _coerce_budget(budget)
    return config


def setup_logging(log_file: Optional[str] = None, debug: bool = False) -> None:
    """
    Route log records away from the terminal the UI draws on: to ``log_file``
    when given, otherwise to the Textual devtools console.
    """
    handler = logging.FileHandler(log_file, mode='a') if log_file else TextualHandler()
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[handler],
    )
