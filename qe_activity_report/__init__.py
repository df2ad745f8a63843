"""Per-user QE activity reports from Jira."""

__version__ = "0.1.0"
