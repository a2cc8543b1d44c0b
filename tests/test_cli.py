from typer.testing import CliRunner

from taskbuster.cli import app

runner = CliRunner()


def test_offline_classify_reports_keyword_intent() -> None:
    result = runner.invoke(app, ["classify", "please make a chart", "--offline"])

    assert result.exit_code == 0
    assert "create_chart" in result.output
    assert "source=keyword" in result.output


def test_offline_classify_unknown_exits_nonzero() -> None:
    result = runner.invoke(app, ["classify", "xyz nonsense request", "--offline"])

    assert result.exit_code == 1
    assert "Intent not recognized" in result.output
