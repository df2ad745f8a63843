"""Detail and summary report rendering."""

from rich.table import Table

from .models import AggregationStore, UserStats

SUMMARY_WIDTH = 110

DETAIL_HEADERS = ["Tester", "Action", "Ticket", "Points", "Summary"]

SUMMARY_HEADERS = [
    "Tester",
    "Filed-QE",
    "Filed-PROC",
    "Filed-Other",
    "Commented",
    "Closed-QE",
    "Closed-PROC",
    "Closed-Other",
    "Closed-Points",
    "Manual",
    "Automated",
]


def _format_points(points: float) -> str:
    if float(points).is_integer():
        return str(int(points))
    return f"{points:g}"


def detail_rows(store: AggregationStore) -> list[list[str]]:
    """One row per detail record, users in store order, records in log order."""
    rows = []
    for stats in store:
        for detail in stats.detail:
            rows.append(
                [
                    stats.username,
                    detail.action.value,
                    detail.ticket_key,
                    _format_points(detail.points),
                    detail.summary[:SUMMARY_WIDTH],
                ]
            )
    return rows


def _summary_row(stats: UserStats) -> list[str]:
    return [
        stats.username,
        str(stats.filed_qe),
        str(stats.filed_proc),
        str(stats.filed_other),
        str(stats.commented),
        str(stats.closed_qe),
        str(stats.closed_proc),
        str(stats.closed_other),
        _format_points(stats.closed_points),
        str(stats.manual_test),
        str(stats.automated_test),
    ]


def summary_rows(store: AggregationStore) -> list[list[str]]:
    """One row per tracked user."""
    return [_summary_row(stats) for stats in store]


def build_detail_table(store: AggregationStore) -> Table:
    """Build the per-action detail table.

    Args:
        store: Populated aggregation store

    Returns:
        Rich table ready to print
    """
    table = Table(title="Detail")
    for header in DETAIL_HEADERS:
        table.add_column(header, justify="right" if header == "Points" else "left")
    for row in detail_rows(store):
        table.add_row(*row)
    return table


def build_summary_table(store: AggregationStore) -> Table:
    """Build the per-user summary table.

    Args:
        store: Populated aggregation store

    Returns:
        Rich table ready to print
    """
    table = Table(title="Summary")
    for header in SUMMARY_HEADERS:
        table.add_column(header, justify="left" if header == "Tester" else "right")
    for row in summary_rows(store):
        table.add_row(*row)
    return table


def _markdown_table(headers: list[str], rows: list[list[str]]) -> list[str]:
    lines = []
    lines.append("| " + " | ".join(headers) + " |")
    lines.append("|" + "|".join("-" * (len(h) + 2) for h in headers) + "|")
    for row in rows:
        cells = [cell.replace("|", "\\|") for cell in row]
        lines.append("| " + " | ".join(cells) + " |")
    return lines


def build_markdown_report(store: AggregationStore, title: str | None = None) -> str:
    """Build both tables as a Markdown document.

    Args:
        store: Populated aggregation store
        title: Optional heading for the document

    Returns:
        Complete Markdown document as a string
    """
    lines = []

    if title:
        lines.append(f"# {title}")
        lines.append("")

    lines.append("## Detail")
    lines.append("")
    lines.extend(_markdown_table(DETAIL_HEADERS, detail_rows(store)))
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.extend(_markdown_table(SUMMARY_HEADERS, summary_rows(store)))

    return "\n".join(lines)
