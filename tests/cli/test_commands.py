import json
from pathlib import Path

from typer.testing import CliRunner

from soluna import __version__
from soluna.cli.commands import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_methods_lists_calculation_methods():
    result = runner.invoke(app, ["methods"])

    assert result.exit_code == 0
    assert "Muslim World League" in result.output


def test_init_config_writes_defaults(tmp_path: Path):
    target = tmp_path / "config.json"

    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 0
    assert json.loads(target.read_text(encoding="utf-8"))["rateLimit"]["bucketSize"] == 10


def test_init_config_refuses_to_overwrite(tmp_path: Path):
    target = tmp_path / "config.json"
    target.write_text("{}", encoding="utf-8")

    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 1
    assert target.read_text(encoding="utf-8") == "{}"


def test_serve_builds_gateway_from_config(monkeypatch, tmp_path: Path):
    calls = {}

    def fake_run_app(app, host, port, print):
        calls["host"] = host
        calls["port"] = port

    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"gateway": {"port": 9100}, "logging": {"level": "WARNING"}}), encoding="utf-8")
    monkeypatch.setattr("aiohttp.web.run_app", fake_run_app)
    monkeypatch.setattr("soluna.core.logger.configure_logger", lambda config: None)

    result = runner.invoke(app, ["serve", "--config", str(config_path), "--host", "127.0.0.1"])

    assert result.exit_code == 0
    assert calls == {"host": "127.0.0.1", "port": 9100}
