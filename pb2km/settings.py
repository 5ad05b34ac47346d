"""Settings resolution from environment, .env and named profiles."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "pb2km" / "config.toml"
DEFAULT_HOST = "https://toil.kitemaker.co"

# Exit status for configuration, validation and API failures.
EXIT_FAILURE = -1


class ImporterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KITEMAKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    token: SecretStr | None = None
    host: str = DEFAULT_HOST
    timeout: float = 30.0  # seconds, per request

    @property
    def endpoint(self) -> str:
        return f"{self.host.rstrip('/')}/developers/graphql"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/pb2km/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> ImporterSettings:
    """Resolve the active profile and return populated ImporterSettings.

    Profile selection (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. KITEMAKER_PROFILE env var
    3. default_profile key in ~/.config/pb2km/config.toml

    Values from the selected profile override KITEMAKER_* env vars and .env.
    Without a profile the environment alone is used.
    """
    toml_config = _load_toml()

    active = profile or os.environ.get("KITEMAKER_PROFILE") or toml_config.get("default_profile")

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}", err=True)
            raise typer.Exit(EXIT_FAILURE)

    settings = ImporterSettings(**profile_defaults)

    if not settings.token:
        typer.echo(
            "Could not find Kitemaker token. Make sure the KITEMAKER_TOKEN environment variable is set.",
            err=True,
        )
        raise typer.Exit(EXIT_FAILURE)

    return settings
