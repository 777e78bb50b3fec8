from typer.testing import CliRunner

from datafinder.cli import app

runner = CliRunner()


def test_version_command_runs() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Datafinder client version" in result.output
