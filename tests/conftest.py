"""Shared fixtures for the qe_activity_report tests.

The project root is added to sys.path so `import qe_activity_report` works
without an editable install.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest
import pytz

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qe_activity_report.models import ReportWindow  # noqa: E402


@pytest.fixture
def window():
    return ReportWindow(
        start=datetime(2024, 1, 1, tzinfo=pytz.utc),
        end=datetime(2024, 1, 31, tzinfo=pytz.utc),
    )


@pytest.fixture
def make_raw_issue():
    """Factory for Jira issue payloads as returned by the search API."""

    def _make(key, creator="alice", summary="Summary", points=None, histories=None):
        fields = {"creator": {"name": creator}, "summary": summary}
        if points is not None:
            fields["customfield_10003"] = points
        raw = {"key": key, "fields": fields}
        if histories is not None:
            raw["changelog"] = {"histories": histories}
        return raw

    return _make


@pytest.fixture
def history():
    """Factory for a single changelog history entry."""

    def _make(author, created, field, from_string, to_string):
        return {
            "author": {"name": author},
            "created": created,
            "items": [{"field": field, "fromString": from_string, "toString": to_string}],
        }

    return _make
