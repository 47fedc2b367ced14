import json

import pytest

import ui.dashboard as dashboard_module
from core.config import Config
from ui.dashboard import Dashboard
from ui.log_utils import redact_url, write_cli_log, write_forward_log, write_incoming_log


def test_redact_url_masks_key():
    redacted = redact_url("http://gw/?key=supersecretvalue&url=https%3A%2F%2Fexample.com%2F")
    assert "supersecretvalue" not in redacted
    assert "key=super" in redacted
    assert "url=https%3A%2F%2Fexample.com%2F" in redacted


def test_redact_url_short_key():
    assert redact_url("http://gw/?key=testing") == "http://gw/?key=%2A%2A%2A"


def test_redact_url_without_query():
    assert redact_url("http://gw/path") == "http://gw/path"


def test_incoming_log_is_redacted(tmp_path):
    path = write_incoming_log(
        "GET",
        "http://gw/?key=testing&url=https%3A%2F%2Fexample.com",
        {"Authorization": "Bearer abcdefghijklmnop", "Accept": "*/*"},
        0,
        log_root=tmp_path,
    )
    payload = json.loads(path.read_text())
    assert "testing" not in payload["url"]
    assert payload["headers"]["Authorization"] == "Bearer...mnop"
    assert payload["headers"]["Accept"] == "*/*"


def test_forward_log_prunes_older_entries(tmp_path):
    for status in (200, 500, 404):
        write_forward_log("GET", "https://example.com/", "dyn_example_com_443", status, path="/", log_root=tmp_path)
    files = list((tmp_path / "forward" / "dyn_example_com_443").glob("*.json"))
    assert len(files) == 2
    assert json.loads(sorted(files)[-1].read_text())["status"] == 404


def test_cli_log_line(tmp_path):
    log_file = tmp_path / "gateway.log"
    write_cli_log("FORWARD", "GET https://example.com/", log_file=log_file, status=200)
    line = log_file.read_text()
    assert "FORWARD: GET https://example.com/ status=200" in line


@pytest.fixture
def cli_lines(monkeypatch):
    lines = []
    monkeypatch.setattr(dashboard_module, "write_cli_log", lambda level, message, **extra: lines.append((level, extra)))
    monkeypatch.setattr(dashboard_module, "write_forward_log", lambda *args, **kwargs: None)
    return lines


def test_dashboard_counts(cli_lines):
    dashboard = Dashboard(Config())
    dashboard.log_forward("GET", "https://example.com/", "dyn_example_com_443", 200, path="/")
    dashboard.log_rejection("ForbiddenHost", 403, "localhost is private or internal")
    dashboard.log_error("https://example.com/", 502, "Connection refused")

    assert dashboard._request_count == {"forwarded": 1, "rejected": 1, "failed": 1}
    assert [level for level, _ in cli_lines] == ["FORWARD", "REJECT", "ERROR"]
    assert len(dashboard._errors) == 2
    dashboard._build_layout()
