"""Per-pass classification rules that attribute tickets to tracked users.

Each rule takes the store, inspects one issue and returns the same store.
Users that were not seeded into the store are skipped by every rule.
"""

import logging
from datetime import datetime

from .models import (
    Action,
    AggregationStore,
    DetailRecord,
    Issue,
    ReportWindow,
    TicketCategory,
)
from .search import AUTOMATED_TEST_LABEL, MANUAL_TEST_LABEL

logger = logging.getLogger(__name__)

CLOSED_STATUS = "Closed"

# Only closures in these buckets add to closed_points.
CLOSED_POINTS_CATEGORIES: frozenset[TicketCategory] = frozenset({TicketCategory.OTHER})

_FILED_COUNTERS = {
    TicketCategory.QE: "filed_qe",
    TicketCategory.PROC: "filed_proc",
    TicketCategory.OTHER: "filed_other",
}

_CLOSED_COUNTERS = {
    TicketCategory.QE: "closed_qe",
    TicketCategory.PROC: "closed_proc",
    TicketCategory.OTHER: "closed_other",
}


def categorize(key: str) -> TicketCategory:
    """Return the bucket for a ticket key (QE-*, PROC-*, anything else)."""
    if key.startswith("QE"):
        return TicketCategory.QE
    if key.startswith("PROC"):
        return TicketCategory.PROC
    return TicketCategory.OTHER


def in_window(timestamp: datetime, window: ReportWindow) -> bool:
    """Check whether a timestamp lies inside the inclusive window."""
    return not (timestamp < window.start or timestamp > window.end)


def _is_tracked(store: AggregationStore, username: str, issue: Issue, rule: str) -> bool:
    if username in store:
        return True
    logger.debug(f"Skipping {rule} {issue.key}: {username} is not a tracked user")
    return False


def _detail(action: Action, issue: Issue, with_changelog: bool = False) -> DetailRecord:
    return DetailRecord(
        action=action,
        ticket_key=issue.key,
        points=issue.story_points or 0,
        summary=issue.summary,
        changelog=issue.changelog if with_changelog else None,
    )


def process_filed(store: AggregationStore, issue: Issue) -> AggregationStore:
    """Record who filed an issue."""
    author = issue.creator
    if not _is_tracked(store, author, issue, "filed"):
        return store

    store.record_detail(author, _detail(Action.FILED, issue, with_changelog=True))
    store.apply_counter_delta(author, _FILED_COUNTERS[categorize(issue.key)])
    return store


def process_commented(store: AggregationStore, issue: Issue) -> AggregationStore:
    """Record a comment on an issue.

    The commented search already restricts results to tracked commenters, so
    attribution goes through the creator field.
    """
    author = issue.creator
    if not _is_tracked(store, author, issue, "commented"):
        return store

    store.record_detail(author, _detail(Action.COMMENTED, issue, with_changelog=True))
    store.apply_counter_delta(author, "commented")
    return store


def process_closed(
    store: AggregationStore, issue: Issue, window: ReportWindow
) -> AggregationStore:
    """Record every transition into Closed made by a tracked user in the window."""
    category = categorize(issue.key)

    for event in issue.changelog:
        if not in_window(event.timestamp, window):
            continue
        for change in event.items:
            if change.field != "status":
                continue
            if change.from_value == CLOSED_STATUS or change.to_value != CLOSED_STATUS:
                continue
            if not _is_tracked(store, event.author, issue, "closed"):
                continue

            detail = _detail(Action.CLOSED, issue)
            store.record_detail(event.author, detail)
            store.apply_counter_delta(event.author, _CLOSED_COUNTERS[category])
            if category in CLOSED_POINTS_CATEGORIES:
                store.apply_counter_delta(event.author, "closed_points", detail.points)

    return store


def _label_added(change_from: str, change_to: str, label: str) -> bool:
    return label not in change_from.split() and label in change_to.split()


def process_tested(
    store: AggregationStore, issue: Issue, window: ReportWindow
) -> AggregationStore:
    """Record manual and automated test labels added by tracked users in the window."""
    for event in issue.changelog:
        if not in_window(event.timestamp, window):
            continue
        for change in event.items:
            if change.field != "labels":
                continue

            if _label_added(change.from_value, change.to_value, MANUAL_TEST_LABEL):
                if _is_tracked(store, event.author, issue, "test-manual"):
                    store.record_detail(event.author, _detail(Action.TEST_MANUAL, issue))
                    store.apply_counter_delta(event.author, "manual_test")

            if _label_added(change.from_value, change.to_value, AUTOMATED_TEST_LABEL):
                if _is_tracked(store, event.author, issue, "test-automated"):
                    store.record_detail(event.author, _detail(Action.TEST_AUTOMATED, issue))
                    store.apply_counter_delta(event.author, "automated_test")

    return store
