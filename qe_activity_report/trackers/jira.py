"""Jira REST API client and issue payload parsing."""

import logging
from datetime import datetime, tzinfo
from typing import Any

import httpx
from dateutil import parser as dtparser

from ..models import ChangeEvent, FieldChange, Issue
from ..tracker_client import DEFAULT_MAX_RESULTS, TrackerClient, TrackerError

logger = logging.getLogger(__name__)

DEFAULT_STORY_POINTS_FIELD = "customfield_10003"


class MalformedIssueError(ValueError):
    """Raised when an issue payload lacks a field the classifier needs."""


class JiraClient(TrackerClient):
    """Jira REST API (v2) client for running bounded JQL searches."""

    def __init__(
        self,
        server: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Jira client.

        Args:
            server: Base URL, e.g. "https://jira.example.com"
            username: Jira account name
            password: Jira password or API token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(username, password)
        self.server = server.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = {"Accept": "application/json"}

    def get_tracker_name(self) -> str:
        """Return the tracker name."""
        return "Jira"

    def search(
        self,
        jql: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        expand: list[str] | None = None,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Run a JQL search and return the issues of the first page."""
        url = f"{self.server}/rest/api/2/search"
        params: dict[str, Any] = {"jql": jql, "maxResults": max_results}
        if expand:
            params["expand"] = ",".join(expand)
        if fields:
            params["fields"] = ",".join(fields)

        auth = None
        if self.username:
            auth = httpx.BasicAuth(self.username, self.password or "")

        logger.debug(f"Jira API: GET {url} (jql: {jql})")
        try:
            with httpx.Client(
                headers=self.headers, auth=auth, timeout=self.timeout, transport=self.transport
            ) as client:
                response = client.get(url, params=params)
                self.api_call_count += 1
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise TrackerError(
                f"Jira search failed {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise TrackerError(f"Jira search failed: {e}") from e
        except ValueError as e:
            raise TrackerError(f"Jira search returned invalid JSON: {e}") from e

        issues = data.get("issues") if isinstance(data, dict) else None
        if not isinstance(issues, list):
            raise TrackerError("Jira search response has no 'issues' list")

        logger.debug(f"Jira API: Received {len(issues)} issues (total: {data.get('total')})")
        return issues


def parse_timestamp(value: str, tz: tzinfo) -> datetime:
    """Parse a Jira timestamp, localizing it to ``tz`` (a pytz zone) when it has no offset."""
    parsed = dtparser.parse(value)
    if parsed.tzinfo is None:
        parsed = tz.localize(parsed)
    return parsed


def _parse_changelog(raw: dict[str, Any], tz: tzinfo) -> tuple[ChangeEvent, ...]:
    changelog = raw.get("changelog") or {}
    events = []
    for history in changelog.get("histories") or []:
        items = tuple(
            FieldChange(
                field=item.get("field", ""),
                from_value=item.get("fromString") or "",
                to_value=item.get("toString") or "",
            )
            for item in history.get("items") or []
        )
        events.append(
            ChangeEvent(
                author=history["author"]["name"],
                timestamp=parse_timestamp(history["created"], tz),
                items=items,
            )
        )
    return tuple(events)


def parse_issue(
    raw: dict[str, Any],
    tz: tzinfo,
    story_points_field: str = DEFAULT_STORY_POINTS_FIELD,
) -> Issue:
    """Convert a raw Jira issue payload into an Issue.

    Args:
        raw: Issue dictionary as returned by the search API
        tz: Timezone assumed for changelog timestamps without an offset
        story_points_field: Custom field holding story points

    Raises:
        MalformedIssueError: If the key, creator or a changelog author/timestamp is missing
    """
    try:
        fields = raw["fields"]
        return Issue(
            key=raw["key"],
            creator=fields["creator"]["name"],
            summary=fields.get("summary") or "",
            story_points=fields.get(story_points_field),
            changelog=_parse_changelog(raw, tz),
        )
    except (KeyError, TypeError, ValueError) as e:
        key = raw.get("key", "<unknown>") if isinstance(raw, dict) else "<unknown>"
        raise MalformedIssueError(f"Issue {key} is malformed: {e!r}") from e
