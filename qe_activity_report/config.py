"""Configuration management for qe-activity-report."""

import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pytz
import yaml
from dateutil import parser as dtparser

from .models import ReportWindow
from .trackers.jira import DEFAULT_STORY_POINTS_FIELD
from .tracker_client import DEFAULT_MAX_RESULTS

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


@dataclass
class JiraConfig:
    """Connection settings for the Jira server."""

    server: str
    username: str | None = None
    password: str | None = None


@dataclass
class Config:
    """Main configuration object."""

    jira: JiraConfig
    users: list[str]
    start: datetime
    end: datetime
    timezone: str = "UTC"
    group: str | None = None
    story_points_field: str = DEFAULT_STORY_POINTS_FIELD
    max_results: int = DEFAULT_MAX_RESULTS

    @property
    def window(self) -> ReportWindow:
        """Reporting window with both bounds localized to the configured timezone."""
        tz = pytz.timezone(self.timezone)
        return ReportWindow(start=tz.localize(self.start), end=tz.localize(self.end))


def _expand_env(value):
    """Expand ${VAR_NAME} references in every string of a parsed YAML value.

    References to unset variables are left as they are.
    """
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_REF.sub(lambda match: os.environ.get(match.group(1), match.group(0)), value)
    return value


def parse_date(value) -> datetime:
    """Parse a calendar date (e.g. 2024/01/31) into a naive start-of-day datetime.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if hasattr(value, "year") and hasattr(value, "month") and hasattr(value, "day"):
        # YAML turns unquoted ISO dates into datetime.date
        return datetime(value.year, value.month, value.day)
    try:
        parsed = dtparser.parse(str(value))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid date: {value}") from e
    return parsed.replace(tzinfo=None)


def _parse_jira(raw_jira) -> JiraConfig:
    if not isinstance(raw_jira, dict):
        raise ValueError("Configuration must specify a 'jira' section")

    server = raw_jira.get("server")
    if not server:
        host = raw_jira.get("host")
        if not host:
            raise ValueError("Jira configuration must specify 'server' or 'host'")
        protocol = raw_jira.get("protocol", "https")
        port = raw_jira.get("port")
        server = f"{protocol}://{host}:{port}" if port else f"{protocol}://{host}"

    return JiraConfig(
        server=server,
        username=raw_jira.get("username") or raw_jira.get("user"),
        password=raw_jira.get("password"),
    )


def load_config(config_path: str | Path) -> Config:
    """Load and parse configuration from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if not raw_config:
        raise ValueError("Configuration file is empty")

    raw_config = _expand_env(raw_config)

    jira = _parse_jira(raw_config.get("jira"))

    users = raw_config.get("users") or []
    if not isinstance(users, list) or not users:
        raise ValueError("Configuration must specify at least one user")
    users = [str(user) for user in users]

    for required in ("start", "end"):
        if required not in raw_config:
            raise ValueError(f"Configuration must specify a '{required}' date")

    start = parse_date(raw_config["start"])
    end = parse_date(raw_config["end"])
    if start > end:
        raise ValueError(f"Start date {start.date()} is after end date {end.date()}")

    timezone = raw_config.get("timezone", "UTC")
    try:
        pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Invalid timezone: {timezone}") from e

    max_results = raw_config.get("max_results", DEFAULT_MAX_RESULTS)
    if not isinstance(max_results, int) or max_results < 1:
        raise ValueError(f"Invalid max_results: {max_results}")

    return Config(
        jira=jira,
        users=users,
        start=start,
        end=end,
        timezone=timezone,
        group=raw_config.get("group"),
        story_points_field=raw_config.get("story_points_field", DEFAULT_STORY_POINTS_FIELD),
        max_results=max_results,
    )
