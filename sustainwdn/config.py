import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
_env_file = Path(__file__).parent.parent / ".env"
load_dotenv(_env_file)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """Path of the app.yaml file, overridable with SUSTAINWDN_CONFIG."""
    override = os.environ.get("SUSTAINWDN_CONFIG")
    if override:
        return Path(override)
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./sustainwdn.db"
    echo: bool = False
    create_all: bool = False


class BackendConfig(BaseModel):
    """Backend used by the collection CLI commands (show, renumber, move).

    ``sql`` opens the configured database. ``rest`` talks to a
    PostgREST-compatible backend-as-a-service at ``rest_url``, writing ranks
    through the ``rank_function`` stored function when one is set. The web
    application always works on its own database.
    """

    kind: Literal["sql", "rest"] = "sql"
    rest_url: str = ""
    api_key: str = ""
    rank_function: str = ""
    timeout: float = 10.0


class AutosaveConfig(BaseModel):
    """Debounced profile autosave configuration."""

    idle_seconds: float = 1.0


class ProfileDefaultsConfig(BaseModel):
    """Values shown for empty profile fields and used for new profiles."""

    first_name: str = "John"
    last_name: str = "Doe"
    phone_number: str = "(555) 555-5555"
    country: str = "US"
    timezone: str = "UTC"


class LogfireConfig(BaseModel):
    """Pydantic Logfire observability configuration."""

    enabled: bool = False
    service_name: str = "sustainwdn"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    debug: bool = False
    secret_key: str
    site_name: str = "SustainWDN"

    # Sections loaded from app.yaml
    db: DatabaseConfig = DatabaseConfig()
    backend: BackendConfig = BackendConfig()
    autosave: AutosaveConfig = AutosaveConfig()
    profile_defaults: ProfileDefaultsConfig = ProfileDefaultsConfig()
    logfire: LogfireConfig = LogfireConfig()


_SECTIONS = {
    "db": DatabaseConfig,
    "backend": BackendConfig,
    "autosave": AutosaveConfig,
    "profile_defaults": ProfileDefaultsConfig,
    "logfire": LogfireConfig,
}


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and app.yaml."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    updates = {}
    for key, model in _SECTIONS.items():
        if key in app_config:
            updates[key] = model(**(app_config[key] or {}))

    if "site_name" in app_config:
        updates["site_name"] = app_config["site_name"]

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings
