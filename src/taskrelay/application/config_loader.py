"""
Config Loader
=============

Loads YAML configuration profiles for the engine.

Responsibilities:
- Load ``{config_dir}/{profile}.yaml``
- Deep-merge the profile onto the built-in defaults
- Apply environment overrides (``TASKRELAY_INVOKER_URL``)
- Validate the result against ``EngineConfigSchema``
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from taskrelay.core.domain.config_schema import EngineConfigSchema, validate_engine_config
from taskrelay.core.domain.errors import ConfigError

logger = structlog.get_logger(__name__)

INVOKER_URL_ENV = "TASKRELAY_INVOKER_URL"
DEFAULT_PROFILE = "dev"


def default_config_dir() -> Path:
    """Directory of the profiles shipped with the package."""
    return Path(__file__).resolve().parent.parent / "configs"


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested dicts merge by key."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigLoader:
    """Load and validate engine configuration profiles.

    Args:
        config_dir: Directory containing profile YAML files.
        environ: Environment mapping used for overrides (defaults to ``os.environ``).
    """

    def __init__(
        self,
        config_dir: Path | str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
        self._environ = environ if environ is not None else os.environ
        self._logger = logger.bind(component="config_loader")

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def defaults(self) -> dict[str, Any]:
        return EngineConfigSchema().model_dump()

    def load_raw(self, profile: str) -> dict[str, Any]:
        """Parse ``{config_dir}/{profile}.yaml``.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping.
        """
        profile_path = self._config_dir / f"{profile}.yaml"
        if not profile_path.exists():
            raise ConfigError(
                f"Profile not found: {profile_path}",
                details={"profile": profile, "file_path": str(profile_path)},
            )
        try:
            with open(profile_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Could not read profile {profile_path}: {e}",
                details={"profile": profile, "file_path": str(profile_path)},
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                "Profile must contain a mapping at the top level",
                details={"profile": profile, "file_path": str(profile_path)},
            )
        return data

    def load(
        self,
        profile: str | None = DEFAULT_PROFILE,
        overrides: Mapping[str, Any] | None = None,
    ) -> EngineConfigSchema:
        """Load a profile, merged onto defaults, with env and explicit overrides.

        Args:
            profile: Profile name, or None to use defaults only. A missing
                ``dev`` profile falls back to defaults; any other missing
                profile is an error.
            overrides: Extra values merged last (used by tests and the CLI).

        Raises:
            ConfigError: If the profile cannot be read or fails validation.
        """
        config = self.defaults()
        file_path: Path | None = None

        if profile:
            try:
                config = deep_merge(config, self.load_raw(profile))
                file_path = self._config_dir / f"{profile}.yaml"
            except ConfigError:
                if profile != DEFAULT_PROFILE or (self._config_dir / f"{profile}.yaml").exists():
                    raise
                self._logger.debug("profile_not_found_using_defaults", profile=profile)

        invoker_url = self._environ.get(INVOKER_URL_ENV)
        if invoker_url:
            config = deep_merge(config, {"invoker": {"base_url": invoker_url}})
            self._logger.debug("env_override_applied", variable=INVOKER_URL_ENV)

        if overrides:
            config = deep_merge(config, overrides)

        validated = validate_engine_config(config, file_path=file_path)
        self._logger.debug(
            "profile_loaded",
            profile=profile,
            invoker_url=validated.invoker.base_url,
        )
        return validated
