from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

import datafinder.cli as cli_mod
from datafinder.api import DatafinderClient, DatafinderSettings

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("DATAFINDER_HOME", str(home))
    for name in ("DATAFINDER_API_KEY", "DATAFINDER_RETRIES", "DATAFINDER_BASE_URL", "DATAFINDER_TIMEOUT", "DATAFINDER_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return home


def install_transport(monkeypatch: pytest.MonkeyPatch, handler) -> list[DatafinderSettings]:  # type: ignore[no-untyped-def]
    created: list[DatafinderSettings] = []

    def fake_make_client(settings: DatafinderSettings) -> DatafinderClient:
        created.append(settings)
        return DatafinderClient(
            settings,
            client=httpx.Client(transport=httpx.MockTransport(handler)),
            sleep=lambda _seconds: None,
        )

    monkeypatch.setattr(cli_mod, "_make_client", fake_make_client)
    return created


def test_append_email_prints_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json={"num-results": 1, "results": [{"EmailAddr": "jane@example.com"}]})

    created = install_transport(monkeypatch, handler)

    result = runner.invoke(
        cli_mod.app,
        ["append-email", "--api-key", "k1", "--first", "Jane", "--zip", "62701", "--field", "d_custom=x"],
    )

    assert result.exit_code == 0, result.output
    assert "jane@example.com" in result.output
    assert created[0].api_key == "k1"
    params = seen[0].params
    assert params["d_first"] == "Jane"
    assert params["d_zip"] == "62701"
    assert params["d_custom"] == "x"
    assert params["service"] == "email"


def test_append_email_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "invalid key", "error_code": 9})

    install_transport(monkeypatch, handler)

    result = runner.invoke(cli_mod.app, ["append-email", "--api-key", "bad", "--last", "Doe"])

    assert result.exit_code == 1
    assert "invalid key" in result.output
    assert "401" in result.output


def test_append_email_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    install_transport(monkeypatch, lambda _request: httpx.Response(200, json={}))

    result = runner.invoke(cli_mod.app, ["append-email", "--last", "Doe"])

    assert result.exit_code == 2
    assert "API key required" in result.output


def test_append_email_rejects_malformed_field(monkeypatch: pytest.MonkeyPatch) -> None:
    install_transport(monkeypatch, lambda _request: httpx.Response(200, json={}))

    result = runner.invoke(cli_mod.app, ["append-email", "--api-key", "k1", "--field", "nokey"])

    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output


def test_append_email_uses_configured_key(monkeypatch: pytest.MonkeyPatch) -> None:
    created = install_transport(monkeypatch, lambda _request: httpx.Response(200, json={"num-results": 0}))
    assert runner.invoke(cli_mod.app, ["config", "set", "--api-key", "stored", "--retries", "2"]).exit_code == 0

    result = runner.invoke(cli_mod.app, ["append-email", "--last", "Doe"])

    assert result.exit_code == 0, result.output
    assert created[0].api_key == "stored"
    assert created[0].retries == 2


def test_append_csv_reports_matches_and_skips_bad_rows(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["d_first"] == "Jane":
            return httpx.Response(200, json={"num-results": 1, "results": [{"EmailAddr": "jane@example.com"}]})
        if request.url.params["d_first"] == "Bob":
            return httpx.Response(200, json={"num-results": 0})
        return httpx.Response(500, json={"message": "upstream down"})

    install_transport(monkeypatch, handler)
    csv_path = tmp_path / "customers.csv"
    csv_path.write_text(
        "first,last,address,city,state,zip\n"
        "Jane,Doe,1 Main St,Springfield,IL,62701\n"
        "Bob,Roe,2 Oak Ave,Springfield,IL,62702\n"
        "broken,row\n"
        "Eve,Poe,3 Elm Rd,Springfield,IL,62703\n"
    )

    result = runner.invoke(cli_mod.app, ["append-csv", str(csv_path), "--header", "--api-key", "k1"])

    assert result.exit_code == 0, result.output
    assert "Got a match for Jane Doe" in result.output
    assert "jane@example.com" in result.output
    assert "Line 4: expected 6 columns" in result.output
    assert "upstream down" in result.output
    assert "Processed 3 rows: 1 matches, 1 failures" in result.output


def test_config_show_masks_api_key() -> None:
    assert runner.invoke(cli_mod.app, ["config", "set", "--api-key", "abcdefghijkl"]).exit_code == 0

    result = runner.invoke(cli_mod.app, ["config", "show"])

    assert result.exit_code == 0
    assert "abcdefghijkl" not in result.output
    assert "abcd…ijkl" in result.output
    assert "retries = 5" in result.output


def test_persisted_debug_setting_echoes_diagnostics(monkeypatch: pytest.MonkeyPatch) -> None:
    created = install_transport(monkeypatch, lambda _request: httpx.Response(200, json={"num-results": 0}))
    assert runner.invoke(cli_mod.app, ["config", "set", "--api-key", "k1", "--debug"]).exit_code == 0

    result = runner.invoke(cli_mod.app, ["append-email", "--last", "Doe"])

    assert result.exit_code == 0, result.output
    assert created[0].debug is True
    assert "[request] POST" in result.output
    assert "d_last=Doe" in result.output
    assert "[response] 200" in result.output
    assert logging.getLogger("datafinder.api.client").isEnabledFor(logging.DEBUG)


def test_diagnostics_not_echoed_without_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    install_transport(monkeypatch, lambda _request: httpx.Response(200, json={"num-results": 0}))

    result = runner.invoke(cli_mod.app, ["append-email", "--api-key", "k1", "--last", "Doe"])

    assert result.exit_code == 0, result.output
    assert "[response]" not in result.output
    assert not logging.getLogger("datafinder.api.client").isEnabledFor(logging.DEBUG)
