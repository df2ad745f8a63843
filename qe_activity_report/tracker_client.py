"""Base class for issue tracker search clients."""

from abc import ABC, abstractmethod
from typing import Any

DEFAULT_MAX_RESULTS = 1000

DEFAULT_FIELDS = [
    "key",
    "issuetype",
    "components",
    "labels",
    "status",
    "timeoriginalestimate",
    "timespent",
    "creator",
    "parent",
    "summary",
]


class TrackerError(RuntimeError):
    """Raised when a tracker search fails or returns an unusable response."""


class TrackerClient(ABC):
    """Abstract base class for issue tracker clients.

    A client runs one bounded search per call; paging past the first
    page is not supported.
    """

    def __init__(self, username: str | None = None, password: str | None = None):
        """Initialize the tracker client.

        Args:
            username: Account used for basic authentication (optional)
            password: Password or API token for that account (optional)
        """
        self.username = username
        self.password = password
        self.api_call_count = 0

    @abstractmethod
    def search(
        self,
        jql: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        expand: list[str] | None = None,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Run a search and return the raw issue payloads of the first page.

        Args:
            jql: Query string in the tracker's query language
            max_results: Upper bound on returned issues
            expand: Extra sections to expand (e.g. ["changelog"])
            fields: Issue fields to include

        Returns:
            List of raw issue dictionaries

        Raises:
            TrackerError: If the request fails
        """
        pass

    @abstractmethod
    def get_tracker_name(self) -> str:
        """Return the name of this tracker (e.g., 'Jira')."""
        pass

    def get_api_call_count(self) -> int:
        """Get the number of API calls made by this client."""
        return self.api_call_count
