"""Sequential search-and-classify passes that fill the aggregation store."""

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Callable

import pytz

from .classify import process_closed, process_commented, process_filed, process_tested
from .models import AggregationStore, Issue, ReportWindow
from .search import build_searches
from .tracker_client import DEFAULT_FIELDS, DEFAULT_MAX_RESULTS, TrackerClient
from .trackers.jira import DEFAULT_STORY_POINTS_FIELD, parse_issue

logger = logging.getLogger(__name__)

# Order matters: every pass writes into the same store.
PASS_ORDER = ("filed", "closed", "commented", "tested")


@dataclass(frozen=True)
class PassResult:
    """Outcome of one search-and-classify pass."""

    name: str
    jql: str
    issue_count: int


def localize_window(window: ReportWindow, tz: tzinfo) -> ReportWindow:
    """Attach ``tz`` (a pytz zone) to naive window bounds; aware bounds are kept."""
    start, end = window.start, window.end
    if start.tzinfo is None:
        start = tz.localize(start)
    if end.tzinfo is None:
        end = tz.localize(end)
    return ReportWindow(start=start, end=end)


def _rule_for(name: str, window: ReportWindow) -> Callable[[AggregationStore, Issue], AggregationStore]:
    if name == "filed":
        return process_filed
    if name == "commented":
        return process_commented
    if name == "closed":
        return lambda store, issue: process_closed(store, issue, window)
    if name == "tested":
        return lambda store, issue: process_tested(store, issue, window)
    raise ValueError(f"Unknown pass: {name}")


def run_pass(
    client: TrackerClient,
    store: AggregationStore,
    name: str,
    jql: str,
    window: ReportWindow,
    tz: tzinfo,
    story_points_field: str = DEFAULT_STORY_POINTS_FIELD,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> tuple[AggregationStore, PassResult]:
    """Run one search and feed every returned issue through the pass's rule."""
    window = localize_window(window, tz)
    rule = _rule_for(name, window)
    fields = [*DEFAULT_FIELDS, story_points_field]

    raw_issues = client.search(jql, max_results=max_results, expand=["changelog"], fields=fields)
    logger.debug(f"Processing {len(raw_issues)} {name} tickets")

    for raw in raw_issues:
        store = rule(store, parse_issue(raw, tz, story_points_field))

    return store, PassResult(name=name, jql=jql, issue_count=len(raw_issues))


def run_passes(
    client: TrackerClient,
    usernames: list[str],
    window: ReportWindow,
    tz: tzinfo = pytz.utc,
    group: str | None = None,
    story_points_field: str = DEFAULT_STORY_POINTS_FIELD,
    max_results: int = DEFAULT_MAX_RESULTS,
    on_pass: Callable[[PassResult], None] | None = None,
) -> AggregationStore:
    """Seed a store for the users and run filed, closed, commented and tested in turn.

    Args:
        client: Tracker client used for the four searches
        usernames: Users to track
        window: Inclusive reporting window; naive bounds are read in ``tz``
        tz: Timezone for naive window bounds and changelog timestamps
        group: Optional tracker group for the filed search
        story_points_field: Custom field holding story points
        max_results: Per-search result cap
        on_pass: Called after each pass completes

    Returns:
        The populated aggregation store

    Raises:
        TrackerError: If any search fails; later passes are not run
        MalformedIssueError: If an issue lacks required fields
    """
    window = localize_window(window, tz)
    store = AggregationStore.initialize(usernames)
    searches = build_searches(usernames, window, group)

    for name in PASS_ORDER:
        store, result = run_pass(
            client,
            store,
            name,
            searches[name],
            window,
            tz,
            story_points_field=story_points_field,
            max_results=max_results,
        )
        if on_pass is not None:
            on_pass(result)

    return store
