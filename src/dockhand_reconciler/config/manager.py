"""Configuration manager — read/write TOML config, resolve profiles."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import tomli_w

from dockhand_reconciler.client.errors import ConfigurationError
from dockhand_reconciler.config.constants import (
    CONFIG_FILE,
    DEFAULT_TIMEOUT,
    ENV_COOKIE,
    ENV_ENDPOINT,
    ENV_PROFILE,
)
from dockhand_reconciler.config.models import CLIConfig, GatewayProfile

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib


def _profile_table(profile: GatewayProfile) -> dict[str, Any]:
    """TOML table for *profile*, leaving out values equal to their defaults."""
    table = profile.model_dump(exclude={"name"}, exclude_none=True)
    if table.get("verify_ssl") is True:
        del table["verify_ssl"]
    if table.get("timeout") == DEFAULT_TIMEOUT:
        del table["timeout"]
    return table


class ConfigManager:
    """Manages CLI configuration on disk and resolves gateway profiles."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or CONFIG_FILE
        self._config: CLIConfig | None = None

    @property
    def config(self) -> CLIConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def _load(self) -> CLIConfig:
        if not self.config_path.exists():
            return CLIConfig()
        data = tomllib.loads(self.config_path.read_bytes().decode())
        return CLIConfig(
            default_profile=data.get("default_profile"),
            profiles={
                name: GatewayProfile(name=name, **table)
                for name, table in data.get("profiles", {}).items()
            },
        )

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        # Session cookies live in here: owner-only
        os.chmod(self.config_path.parent, 0o700)
        data: dict[str, Any] = {}
        if self.config.default_profile:
            data["default_profile"] = self.config.default_profile
        if self.config.profiles:
            data["profiles"] = {
                name: _profile_table(profile) for name, profile in self.config.profiles.items()
            }
        temp = self.config_path.with_suffix(".tmp")
        fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, tomli_w.dumps(data).encode())
        finally:
            os.close(fd)
        temp.replace(self.config_path)

    def add_profile(self, profile: GatewayProfile) -> None:
        self.config.profiles[profile.name] = profile
        if not self.config.default_profile:
            self.config.default_profile = profile.name
        self.save()

    def remove_profile(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        del self.config.profiles[name]
        if self.config.default_profile == name:
            self.config.default_profile = next(iter(self.config.profiles), None)
        self.save()
        return True

    def set_default(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        self.config.default_profile = name
        self.save()
        return True

    def get_profile(self, name: str | None = None) -> GatewayProfile | None:
        if name:
            return self.config.profiles.get(name)
        default = self.config.default_profile
        if default:
            return self.config.profiles.get(default)
        return None

    def resolve_gateway(
        self,
        profile_name: str | None = None,
        url: str | None = None,
        cookie: str | None = None,
    ) -> GatewayProfile:
        """Resolve the gateway connection.

        Precedence: CLI flags > env vars > config profile.
        """
        env_profile = os.environ.get(ENV_PROFILE)
        profile = self.get_profile(profile_name or env_profile)

        env_url = os.environ.get(ENV_ENDPOINT)
        env_cookie = os.environ.get(ENV_COOKIE)

        resolved_url = url or env_url or (profile.url if profile else None)
        resolved_cookie = cookie or env_cookie or (profile.cookie if profile else None)

        if not resolved_url:
            raise ConfigurationError(
                "No gateway endpoint configured. Use 'dockhand config add' or set "
                f"{ENV_ENDPOINT} or pass --url."
            )

        return GatewayProfile(
            name=profile.name if profile else "cli",
            url=resolved_url.rstrip("/"),
            cookie=resolved_cookie,
            verify_ssl=profile.verify_ssl if profile else True,
            timeout=profile.timeout if profile else DEFAULT_TIMEOUT,
        )
