"""Load build settings from an optional YAML file and the environment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from stagehand.services.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

_ENV_NAMES: Mapping[str, str] = {
    "workspace": "STAGEHAND_WORKSPACE",
    "content_service_url": "STAGEHAND_CONTENT_SERVICE_URL",
    "content_service_api_key": "STAGEHAND_CONTENT_SERVICE_APIKEY",
    "staging_content_service_url": "STAGEHAND_STAGING_CONTENT_SERVICE_URL",
    "staging_content_service_admin_api_key": "STAGEHAND_STAGING_CONTENT_SERVICE_ADMIN_APIKEY",
    "staging_presenter_url": "STAGEHAND_STAGING_PRESENTER_URL",
    "github_token": "STAGEHAND_GITHUB_TOKEN",
    "github_api_url": "STAGEHAND_GITHUB_API_URL",
    "pull_request_url": "STAGEHAND_PULL_REQUEST_URL",
    "mock_git_sha": "STAGEHAND_MOCK_GIT_SHA",
}


@dataclass(slots=True)
class BuildSettings:
    """Everything a build needs to know about its workspace and remote services."""

    workspace: Path = field(default_factory=Path.cwd)
    content_service_url: str = ""
    content_service_api_key: str = field(default="", repr=False)
    staging_content_service_url: str = ""
    staging_content_service_admin_api_key: str = field(default="", repr=False)
    staging_presenter_url: str = ""
    github_token: str = field(default="", repr=False)
    github_api_url: str = "https://api.github.com"
    pull_request_url: str = ""
    mock_git_sha: str = ""

    @property
    def is_pull_request(self) -> bool:
        return bool(self.pull_request_url)

    def validate(self) -> "BuildSettings":
        """Raise :class:`ConfigurationError` when the selected mode is missing settings."""

        missing: list[str] = []
        if self.is_pull_request:
            required = ("staging_content_service_url", "staging_content_service_admin_api_key")
        else:
            required = ("content_service_url", "content_service_api_key")
        for name in required:
            if not getattr(self, name):
                missing.append(_ENV_NAMES[name])

        if missing:
            mode = "pull request" if self.is_pull_request else "content"
            raise ConfigurationError(f"Missing settings for a {mode} build: {', '.join(missing)}")

        if not self.workspace.is_dir():
            raise ConfigurationError(f"Workspace '{self.workspace}' is not a directory")
        return self


def _read_settings_file(path: Path) -> dict[str, Any]:
    """Parse the YAML settings file at ``path`` into a mapping."""

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Unable to read settings file '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Settings file '{path}' is not valid YAML: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Settings file '{path}' must contain a mapping")
    return raw


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BuildSettings:
    """Return settings layered as defaults, then ``config_path``, then environment variables."""

    env = os.environ if environ is None else environ
    valid_names = {item.name for item in fields(BuildSettings)}
    values: dict[str, Any] = {}

    if config_path is not None:
        for key, value in _read_settings_file(Path(config_path)).items():
            if key not in valid_names:
                LOGGER.warning("Ignoring unknown setting '%s' in %s", key, config_path)
                continue
            if value is None:
                continue
            if not isinstance(value, str):
                # YAML would otherwise turn values like 0123456 into other numbers.
                raise ConfigurationError(
                    f"Setting '{key}' in {config_path} must be a string; quote the value (got {value!r})"
                )
            values[key] = value

    for name, variable in _ENV_NAMES.items():
        raw_value = env.get(variable)
        if raw_value:
            values[name] = raw_value.strip()

    if "workspace" in values:
        values["workspace"] = Path(values["workspace"]).expanduser()

    return BuildSettings(**values)
