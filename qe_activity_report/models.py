"""Data models for QE activity metrics."""

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class TicketCategory(str, Enum):
    """Bucket a ticket falls into, derived from its key prefix."""

    QE = "QE"
    PROC = "PROC"
    OTHER = "Other"


class Action(str, Enum):
    """Kind of activity a detail record attributes to a user."""

    FILED = "filed"
    COMMENTED = "commented"
    CLOSED = "closed"
    TEST_MANUAL = "test-manual"
    TEST_AUTOMATED = "test-automated"


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive [start, end] reporting range."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class FieldChange:
    field: str
    from_value: str
    to_value: str


@dataclass(frozen=True)
class ChangeEvent:
    author: str
    timestamp: datetime
    items: tuple[FieldChange, ...] = ()


@dataclass(frozen=True)
class Issue:
    """A tracker ticket reduced to the fields the classifier reads."""

    key: str
    creator: str
    summary: str
    story_points: float | None = None
    changelog: tuple[ChangeEvent, ...] = ()


@dataclass(frozen=True)
class DetailRecord:
    """One attributable action logged against a user."""

    action: Action
    ticket_key: str
    points: float = 0
    summary: str = ""
    changelog: tuple[ChangeEvent, ...] | None = None


@dataclass
class UserStats:
    """Counters and detail log for a single tracked user."""

    username: str
    filed_qe: int = 0
    filed_proc: int = 0
    filed_other: int = 0
    commented: int = 0
    closed_qe: int = 0
    closed_proc: int = 0
    closed_other: int = 0
    closed_points: float = 0
    manual_test: int = 0
    automated_test: int = 0
    detail: list[DetailRecord] = field(default_factory=list)


COUNTER_FIELDS: frozenset[str] = frozenset(
    f.name for f in fields(UserStats) if f.name not in ("username", "detail")
)


class UnknownUserError(KeyError):
    """Raised when the store is asked to update a user it was not seeded with."""


class AggregationStore:
    """Mapping of username to UserStats, seeded once per run.

    Only appends and counter increments are supported; nothing is ever
    removed or rewritten.
    """

    def __init__(self) -> None:
        self._stats: dict[str, UserStats] = {}

    @classmethod
    def initialize(cls, usernames: list[str]) -> "AggregationStore":
        """Create a store with one zeroed UserStats per username."""
        store = cls()
        for username in usernames:
            if username not in store._stats:
                store._stats[username] = UserStats(username=username)
        return store

    def __contains__(self, username: object) -> bool:
        return username in self._stats

    def __getitem__(self, username: str) -> UserStats:
        try:
            return self._stats[username]
        except KeyError:
            raise UnknownUserError(username) from None

    def __iter__(self) -> Iterator[UserStats]:
        return iter(self._stats.values())

    def __len__(self) -> int:
        return len(self._stats)

    def usernames(self) -> list[str]:
        return list(self._stats)

    def record_detail(self, username: str, detail: DetailRecord) -> None:
        """Append a detail record to a user's log."""
        self[username].detail.append(detail)

    def apply_counter_delta(self, username: str, counter: str, delta: float = 1) -> None:
        """Increment one named counter for a user.

        Raises:
            UnknownUserError: If the user was not seeded
            ValueError: If the counter name is not a UserStats counter
        """
        if counter not in COUNTER_FIELDS:
            raise ValueError(f"Unknown counter: {counter}")
        stats = self[username]
        setattr(stats, counter, getattr(stats, counter) + delta)
        logger.debug(f"{username}: {counter} += {delta}")
