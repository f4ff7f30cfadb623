"""Configuration management for threadpress."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


def get_config_dir() -> Path:
    """Get the XDG-compliant configuration directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config) / "threadpress"


def get_data_dir() -> Path:
    """Get the XDG-compliant data directory."""
    xdg_data = os.environ.get("XDG_DATA_HOME", str(Path.home() / ".local" / "share"))
    return Path(xdg_data) / "threadpress"


def parse_id_list(value: str | list[Any] | None) -> list[str]:
    """Parse a list of ids from a TOML list or a comma-separated string."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


@dataclass
class SiteConfig:
    """Site-wide output settings."""

    title: str = "Thread Archive"
    description: str = ""
    base_url: str | None = None
    output_dir: Path = field(default_factory=lambda: get_data_dir() / "site")
    templates_dir: Path | None = None


@dataclass
class PublishConfig:
    """Publish and answer decision settings."""

    publisher_role_ids: list[str] = field(default_factory=list)
    publish_emoji: str = ""
    answer_emoji: str = ""


@dataclass
class BuildConfig:
    """Page build settings."""

    index_debounce_seconds: float = 0.2
    download_timeout: float = 30.0
    excerpt_length: int = 180
    reply_preview_length: int = 80
    group_window_minutes: int = 10


@dataclass
class Config:
    """Application configuration."""

    site: SiteConfig = field(default_factory=SiteConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    build: BuildConfig = field(default_factory=BuildConfig)

    def require_publishing(self) -> None:
        """Ensure the settings needed for publish decisions are present."""
        if not self.publish.publisher_role_ids:
            raise ConfigError("publish.publisher_role_ids must list at least one role id")
        if not self.publish.publish_emoji:
            raise ConfigError("publish.publish_emoji is required")
        if not self.publish.answer_emoji:
            raise ConfigError("publish.answer_emoji is required")


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def _apply_env_overrides(config: Config) -> None:
    """Override selected settings from THREADPRESS_* environment variables."""
    if output_dir := os.environ.get("THREADPRESS_OUTPUT_DIR"):
        config.site.output_dir = Path(output_dir).expanduser()
    if base_url := os.environ.get("THREADPRESS_BASE_URL"):
        config.site.base_url = base_url
    if role_ids := os.environ.get("THREADPRESS_PUBLISHER_ROLE_IDS"):
        config.publish.publisher_role_ids = parse_id_list(role_ids)
    if publish_emoji := os.environ.get("THREADPRESS_PUBLISH_EMOJI"):
        config.publish.publish_emoji = publish_emoji.strip()
    if answer_emoji := os.environ.get("THREADPRESS_ANSWER_EMOJI"):
        config.publish.answer_emoji = answer_emoji.strip()


def load_config(path: Path) -> Config:
    """Load configuration from TOML file, with defaults for missing values."""
    if not path.exists():
        config = Config()
        _apply_env_overrides(config)
        return config

    with path.open("rb") as f:
        data = tomllib.load(f)

    defaults = SiteConfig()
    site_data = data.get("site", {})
    site_config = SiteConfig(
        title=site_data.get("title", defaults.title),
        description=site_data.get("description", defaults.description),
        base_url=site_data.get("base_url") or None,
        output_dir=_optional_path(site_data.get("output_dir")) or defaults.output_dir,
        templates_dir=_optional_path(site_data.get("templates_dir")),
    )

    publish_data = data.get("publish", {})
    publish_config = PublishConfig(
        publisher_role_ids=parse_id_list(publish_data.get("publisher_role_ids")),
        publish_emoji=str(publish_data.get("publish_emoji", "")).strip(),
        answer_emoji=str(publish_data.get("answer_emoji", "")).strip(),
    )

    build_data = data.get("build", {})
    build_config = BuildConfig(
        index_debounce_seconds=float(build_data.get("index_debounce_seconds", 0.2)),
        download_timeout=float(build_data.get("download_timeout", 30.0)),
        excerpt_length=int(build_data.get("excerpt_length", 180)),
        reply_preview_length=int(build_data.get("reply_preview_length", 80)),
        group_window_minutes=int(build_data.get("group_window_minutes", 10)),
    )

    config = Config(site=site_config, publish=publish_config, build=build_config)
    _apply_env_overrides(config)
    return config
