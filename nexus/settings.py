"""Settings resolution with workspace profiles from ~/.config/nexus/config.toml."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "nexus" / "config.toml"
DATA_ROOT = Path.home() / ".local" / "share" / "nexus"


class NexusSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NEXUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_workspace: str | None = None
    workspace: str = "default"  # resolved active profile name

    data_dir: Path | None = None  # where tasks.json / developers.json / robots.json live
    user_name: str | None = None  # acting user recorded in task history
    overload_hours: float = 40.0
    http_timeout: float = 30.0

    @property
    def store_dir(self) -> Path:
        return self.data_dir or DATA_ROOT / self.workspace

    @property
    def acting_user(self) -> str:
        return self.user_name or os.environ.get("USER") or "Sistema"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/nexus/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(workspace: str | None = None) -> NexusSettings:
    """Resolve the active workspace profile and return populated NexusSettings.

    Precedence (highest to lowest):
    1. workspace argument (--workspace CLI flag)
    2. NEXUS_DEFAULT_WORKSPACE env var
    3. default_workspace key in ~/.config/nexus/config.toml
    4. First profile defined in ~/.config/nexus/config.toml
    """
    toml_config = _load_toml()

    active = (
        workspace
        or os.environ.get("NEXUS_DEFAULT_WORKSPACE")
        or toml_config.get("default_workspace")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        elif toml_config and active not in toml_config:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Workspace '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)
        profile_defaults["workspace"] = active

    # Profile values arrive as init kwargs; unset fields fall back to NEXUS_* env vars and .env
    return NexusSettings(**profile_defaults)
