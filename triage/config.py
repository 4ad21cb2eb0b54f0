"""
Configuration for Triage Assist.

Settings are resolved from, in priority order: explicit overrides,
environment variables (a .env file is loaded first), an optional YAML
file, and the defaults below.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/settings.yaml"

# Environment variable for each setting
ENV_VARS = {
    "data_dir": "TRIAGE_DATA_DIR",
    "log_level": "LOG_LEVEL",
    "log_file": "TRIAGE_LOG_FILE",
    "openrouter_api_key": "OPENROUTER_API_KEY",
    "triage_model": "TRIAGE_MODEL",
    "endemic_model": "TRIAGE_ENDEMIC_MODEL",
    "extraction_model": "TRIAGE_EXTRACTION_MODEL",
    "address_model": "TRIAGE_ADDRESS_MODEL",
    "store_passphrase": "TRIAGE_STORE_PASSPHRASE",
    "recent_history_limit": "TRIAGE_RECENT_HISTORY_LIMIT",
    "address_min_chars": "TRIAGE_ADDRESS_MIN_CHARS",
    "max_address_suggestions": "TRIAGE_MAX_ADDRESS_SUGGESTIONS",
}


@dataclass
class Settings:
    """Runtime settings."""

    data_dir: str = "data"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Collaborators (OpenRouter model ids)
    openrouter_api_key: Optional[str] = field(default=None, repr=False)
    triage_model: str = "google/gemini-3-pro-preview"
    endemic_model: str = "google/gemini-3-pro-preview"
    extraction_model: str = "google/gemini-3-flash-preview"
    address_model: str = "google/gemini-3-flash-preview"

    # Enables FernetCipher when set; otherwise blobs are only base64-encoded
    store_passphrase: str = field(default="", repr=False)

    recent_history_limit: int = 5
    address_min_chars: int = 3
    max_address_suggestions: int = 5

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def encrypted(self) -> bool:
        return bool(self.store_passphrase)

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        env_file: Optional[str] = None,
        **overrides,
    ) -> "Settings":
        """
        Build settings from YAML, environment and explicit overrides.

        Args:
            config_path: YAML file (defaults to TRIAGE_CONFIG or config/settings.yaml)
            env_file: Optional .env file to load before reading the environment
            **overrides: Values that win over every other source
        """
        load_dotenv(env_file)

        values: dict = {}
        path = Path(config_path or os.getenv("TRIAGE_CONFIG", DEFAULT_CONFIG_PATH))
        values.update(_read_yaml(path))

        for name, env_var in ENV_VARS.items():
            env_value = os.getenv(env_var)
            if env_value:
                values[name] = env_value

        values.update({k: v for k, v in overrides.items() if v is not None})

        known = {f.name: f for f in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")

        kwargs = {}
        for name, value in values.items():
            if name not in known:
                continue
            if known[name].type is int or known[name].type == "int":
                value = int(value)
            kwargs[name] = value

        return cls(**kwargs)


def _read_yaml(path: Path) -> dict:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a mapping")
        return {}
    return data.get("triage", data)
