"""
CASCADE Config - Settings read from the environment and an optional .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from cascade.errors import ConfigError

DEFAULT_PLANNER_MODEL = 'gemini-2.5-pro'
DEFAULT_PROMPT_MODEL = 'gemini-2.5-pro'
DEFAULT_IMAGE_MODEL = 'gemini-2.5-flash-image'


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    planner_model: str = DEFAULT_PLANNER_MODEL
    prompt_model: str = DEFAULT_PROMPT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL

    def require_api_key(self) -> str:
        """Return the API key or fail before any run starts."""
        if not self.api_key:
            raise ConfigError("GEMINI_API_KEY environment variable not set")
        return self.api_key


def _env(name: str, default: str) -> str:
    value = os.getenv(name, '').strip()
    return value or default


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings, reading ``env_file`` (or ./.env) first.

    Variables already present in the environment take precedence over the file.
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv(Path.cwd() / '.env')

    api_key = os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')

    return Settings(
        api_key=api_key.strip() if api_key else None,
        planner_model=_env('CASCADE_PLANNER_MODEL', DEFAULT_PLANNER_MODEL),
        prompt_model=_env('CASCADE_PROMPT_MODEL', DEFAULT_PROMPT_MODEL),
        image_model=_env('CASCADE_IMAGE_MODEL', DEFAULT_IMAGE_MODEL),
    )
