import pytest
from typer.testing import CliRunner

from qe_activity_report import cli
from qe_activity_report.tracker_client import TrackerClient, TrackerError

runner = CliRunner()

CONFIG = """
jira:
  server: https://jira.example.com
  username: alice
  password: secret
users: [alice]
start: 2024/01/01
end: 2024/01/31
"""


class StubTracker(TrackerClient):
    def __init__(self, issues=None, error=None):
        super().__init__()
        self.issues = issues or []
        self.error = error

    def get_tracker_name(self):
        return "Stub"

    def search(self, jql, max_results=1000, expand=None, fields=None):
        if self.error:
            raise self.error
        if jql.startswith("creator"):
            return self.issues
        return []


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    return path


def test_generate_markdown(config_file, monkeypatch, make_raw_issue):
    tracker = StubTracker([make_raw_issue("QE-5", points=3, summary="Crash on launch")])
    monkeypatch.setattr(cli, "create_client", lambda config: tracker)

    result = runner.invoke(cli.app, ["generate", "-c", str(config_file), "--format", "markdown"])

    assert result.exit_code == 0, result.output
    assert "| alice | filed | QE-5 | 3 | Crash on launch |" in result.output
    assert "| alice | 1 | 0 | 0 | 0 | 0 | 0 | 0 | 0 | 0 | 0 |" in result.output


def test_generate_tables(config_file, monkeypatch):
    monkeypatch.setattr(cli, "create_client", lambda config: StubTracker())
    result = runner.invoke(cli.app, ["generate", "-c", str(config_file)])
    assert result.exit_code == 0, result.output
    assert "Tracker: Stub" in result.output
    assert "Summary" in result.output


def test_generate_fails_without_report_on_tracker_error(config_file, monkeypatch):
    monkeypatch.setattr(cli, "create_client", lambda config: StubTracker(error=TrackerError("boom")))
    result = runner.invoke(cli.app, ["generate", "-c", str(config_file), "--format", "markdown"])
    assert result.exit_code == 1
    assert "boom" in result.output
    assert "## Summary" not in result.output


def test_validate(config_file):
    result = runner.invoke(cli.app, ["validate", "-c", str(config_file)])
    assert result.exit_code == 0
    assert "Configuration is valid" in result.output
    assert "Users: 1" in result.output


def test_validate_invalid_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG.replace("users: [alice]", "users: []"))
    result = runner.invoke(cli.app, ["validate", "-c", str(path)])
    assert result.exit_code == 1
    assert "Error loading configuration" in result.output


def test_create_client_builds_jira_client(config_file):
    client = cli.create_client(cli.load_config(config_file))
    assert client.get_tracker_name() == "Jira"
    assert client.server == "https://jira.example.com"
