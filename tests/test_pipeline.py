from datetime import datetime

import pytest
import pytz

from qe_activity_report.models import Action, ReportWindow
from qe_activity_report.pipeline import PASS_ORDER, localize_window, run_passes
from qe_activity_report.tracker_client import TrackerClient, TrackerError


class FakeTracker(TrackerClient):
    """Answers each search with the issues registered for the matching pass."""

    def __init__(self, responses=None, fail_on=None):
        super().__init__()
        self.responses = responses or {}
        self.fail_on = fail_on
        self.queries = []

    def get_tracker_name(self):
        return "Fake"

    def search(self, jql, max_results=1000, expand=None, fields=None):
        self.api_call_count += 1
        self.queries.append((jql, max_results, expand, fields))
        name = self._pass_for(jql)
        if name == self.fail_on:
            raise TrackerError(f"{name} search failed")
        return self.responses.get(name, [])

    @staticmethod
    def _pass_for(jql):
        if jql.startswith("creator"):
            return "filed"
        if "CHANGED TO Closed" in jql:
            return "closed"
        if "commented(" in jql:
            return "commented"
        return "tested"


def test_passes_run_in_order_with_changelog(window):
    tracker = FakeTracker()
    seen = []
    run_passes(tracker, ["alice"], window, max_results=50, on_pass=lambda result: seen.append(result.name))

    assert seen == list(PASS_ORDER)
    assert [FakeTracker._pass_for(q[0]) for q in tracker.queries] == list(PASS_ORDER)
    for _, max_results, expand, fields in tracker.queries:
        assert max_results == 50
        assert expand == ["changelog"]
        assert "customfield_10003" in fields


def test_end_to_end_scenario(window, make_raw_issue, history):
    tracker = FakeTracker(
        {
            "filed": [make_raw_issue("QE-5", creator="alice", points=3)],
            "closed": [
                make_raw_issue(
                    "PROC-9",
                    creator="carol",
                    histories=[history("alice", "2024-01-15T09:00:00.000+0000", "status", "Open", "Closed")],
                )
            ],
            "tested": [
                make_raw_issue(
                    "OTHER-1",
                    creator="carol",
                    histories=[history("alice", "2024-01-20T09:00:00.000+0000", "labels", "", "qe-manualtest")],
                )
            ],
        }
    )

    store = run_passes(tracker, ["alice"], window, tz=pytz.utc)
    stats = store["alice"]

    assert stats.filed_qe == 1
    assert stats.closed_proc == 1
    assert stats.closed_points == 0
    assert stats.manual_test == 1
    assert [(d.action, d.ticket_key, d.points) for d in stats.detail] == [
        (Action.FILED, "QE-5", 3),
        (Action.CLOSED, "PROC-9", 0),
        (Action.TEST_MANUAL, "OTHER-1", 0),
    ]


def test_transport_failure_stops_later_passes(window):
    tracker = FakeTracker(fail_on="closed")
    with pytest.raises(TrackerError):
        run_passes(tracker, ["alice"], window)
    assert tracker.get_api_call_count() == 2


def test_naive_window_is_read_in_the_given_timezone(make_raw_issue, history):
    tracker = FakeTracker(
        {
            "closed": [
                make_raw_issue(
                    "PROC-9",
                    histories=[history("alice", "2024-01-15T09:00:00.000+0000", "status", "Open", "Closed")],
                )
            ],
            "tested": [
                make_raw_issue(
                    "OTHER-1",
                    histories=[history("alice", "2024-01-01T03:00:00.000+0000", "labels", "", "qe-manualtest")],
                )
            ],
        }
    )
    window = ReportWindow(datetime(2024, 1, 1), datetime(2024, 1, 31))

    store = run_passes(tracker, ["alice"], window, tz=pytz.timezone("America/New_York"))

    assert store["alice"].closed_proc == 1
    # 03:00 UTC on Jan 1 is still Dec 31 in New York
    assert store["alice"].manual_test == 0


def test_localize_window_keeps_aware_bounds(window):
    assert localize_window(window, pytz.timezone("America/New_York")) == window
