"""JQL search construction for the four collection passes."""

from string import Formatter

from .models import ReportWindow

DATE_FORMAT = "%Y/%m/%d"
DATETIME_FORMAT = "%Y/%m/%d %H:%M"

MANUAL_TEST_LABEL = "qe-manualtest"
AUTOMATED_TEST_LABEL = "qe-automatedtest"

COMMENTED_TEMPLATE = 'issueFunction in commented("by {user} after {start} before {end}")'
CLOSED_TEMPLATE = 'status CHANGED TO Closed DURING ("{start}", "{end}") BY "{user}"'

_PLACEHOLDERS = frozenset({"user", "start", "end"})


class SearchTemplateError(ValueError):
    """Raised when a per-user search template is missing a placeholder."""


def _template_fields(template: str) -> set[str]:
    return {name for _, name, _, _ in Formatter().parse(template) if name is not None}


def create_search(template: str, usernames: list[str], window: ReportWindow) -> str:
    """Create a parameterized search across a list of users.

    Args:
        template: Search string with {user}, {start} and {end} placeholders
        usernames: Users to substitute, one clause each
        window: Reporting window; dates are rendered as YYYY/MM/DD

    Returns:
        The per-user clauses joined with OR

    Raises:
        SearchTemplateError: If the template lacks a placeholder
    """
    missing = _PLACEHOLDERS - _template_fields(template)
    if missing:
        raise SearchTemplateError(
            f"Search template is missing placeholder(s): {', '.join(sorted(missing))}"
        )

    start = window.start.strftime(DATE_FORMAT)
    end = window.end.strftime(DATE_FORMAT)
    return " OR ".join(
        template.format(user=username, start=start, end=end) for username in usernames
    )


def _date_range_clause(field_name: str, window: ReportWindow) -> str:
    return (
        f'{field_name} >= "{window.start.strftime(DATETIME_FORMAT)}" '
        f'AND {field_name} <= "{window.end.strftime(DATETIME_FORMAT)}"'
    )


def build_filed_search(
    usernames: list[str], window: ReportWindow, group: str | None = None
) -> str:
    """Issues created by the tracked users (or a tracker group) in the window."""
    if group:
        creator = f'creator in membersOf("{group}")'
    else:
        quoted = ", ".join(f'"{username}"' for username in usernames)
        creator = f"creator in ({quoted})"
    return f"{creator} AND {_date_range_clause('createdDate', window)}"


def build_commented_search(usernames: list[str], window: ReportWindow) -> str:
    return create_search(COMMENTED_TEMPLATE, usernames, window)


def build_closed_search(usernames: list[str], window: ReportWindow) -> str:
    return create_search(CLOSED_TEMPLATE, usernames, window)


def build_tested_search(window: ReportWindow) -> str:
    """Issues updated in the window that carry either QE test label."""
    return (
        f"({_date_range_clause('updatedDate', window)}) "
        f"AND labels in ({AUTOMATED_TEST_LABEL}, {MANUAL_TEST_LABEL})"
    )


def build_searches(
    usernames: list[str], window: ReportWindow, group: str | None = None
) -> dict[str, str]:
    """Build all four searches keyed by pass name."""
    return {
        "filed": build_filed_search(usernames, window, group),
        "closed": build_closed_search(usernames, window),
        "commented": build_commented_search(usernames, window),
        "tested": build_tested_search(window),
    }
