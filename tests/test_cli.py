import argparse
import io
import logging
import copy
from pathlib import Path

import httpx
import pytest
import respx

import canarydash.cli as cli
from canarydash.config.loader import DEFAULT_CONFIG, ConfigError


def _minimal_config(tmp_path: Path) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["api"]["base_url"] = "http://backend.test"
    cfg["logging"]["console"] = False
    cfg["theme"]["state_file"] = str(tmp_path / "state.json")
    return cfg


def test_create_parser_includes_flags():
    parser = cli.create_parser()
    args = parser.parse_args([
        "--base-url", "http://x.test", "--interval", "2.5", "--time-range", "60",
        "--overlap", "allow", "--once", "--ui", "headless",
    ])
    assert args.base_url == "http://x.test"
    assert args.interval == 2.5
    assert args.time_range == 60
    assert args.overlap == "allow"
    assert args.once is True
    assert args.ui == "headless"
    assert args.export_html is None


def test_create_parser_rejects_unknown_overlap():
    with pytest.raises(SystemExit):
        cli.create_parser().parse_args(["--overlap", "queue"])


def test_main_handles_config_error(monkeypatch):
    monkeypatch.setattr(cli, "load_config", lambda path=None: (_ for _ in ()).throw(ConfigError("bad config")))
    code = cli.main([])
    assert code == 1


def test_main_rejects_invalid_override(monkeypatch, tmp_path):
    cfg = _minimal_config(tmp_path)
    monkeypatch.setattr(cli, "load_config", lambda path=None: cfg)
    code = cli.main(["--interval", "0"])
    assert code == 1


def test_main_applies_overrides_and_calls_runner(monkeypatch, tmp_path):
    cfg = _minimal_config(tmp_path)

    called = {}

    async def fake_run_dashboard(config, args):
        called["config"] = config
        called["args"] = args
        return 0

    monkeypatch.setattr(cli, "load_config", lambda path=None: cfg)
    monkeypatch.setattr(cli, "run_dashboard", fake_run_dashboard)

    code = cli.main([
        "--base-url", "http://other.test", "--interval", "10",
        "--time-range", "360", "--overlap", "skip",
    ])
    assert code == 0
    assert called["config"]["api"]["base_url"] == "http://other.test"
    assert called["config"]["polling"]["interval_seconds"] == 10
    assert called["config"]["polling"]["overlap"] == "skip"
    assert called["config"]["dashboard"]["default_time_range"] == 360


def test_main_returns_130_on_keyboard_interrupt(monkeypatch, tmp_path):
    cfg = _minimal_config(tmp_path)

    async def interrupted(config, args):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "load_config", lambda path=None: cfg)
    monkeypatch.setattr(cli, "run_dashboard", interrupted)

    assert cli.main([]) == 130


def test_use_textual_requires_tty(monkeypatch):
    args = cli.create_parser().parse_args([])
    monkeypatch.setattr(cli.sys, "stdout", io.StringIO())
    assert cli._use_textual(args) is False

    args = cli.create_parser().parse_args(["--once"])
    assert cli._use_textual(args) is False


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_dashboard_once_exports_html(tmp_path, metrics_payload, match_payload):
    cfg = _minimal_config(tmp_path)
    out = tmp_path / "matches.html"
    args = cli.create_parser().parse_args(["--once", "--export-html", str(out)])

    with respx.mock(assert_all_called=True) as mock:
        mock.get("http://backend.test/api/metrics").respond(200, json=metrics_payload)
        mock.get("http://backend.test/api/matches/recent").respond(200, json={
            "matches": [match_payload(dns_names=["<b>evil</b>.test"])]
        })
        mock.get("http://backend.test/api/metrics/performance").respond(200, json={"current": None})

        code = await cli.run_dashboard(cfg, args)

    assert code == 0
    html = out.read_text()
    assert "&lt;b&gt;evil&lt;/b&gt;.test" in html
    assert "<b>" not in html


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_dashboard_once_offline_returns_1(tmp_path):
    cfg = _minimal_config(tmp_path)
    args = argparse.Namespace(ui="headless", once=True, export_html=None)

    with respx.mock() as mock:
        mock.route(host="backend.test").mock(side_effect=httpx.ConnectError("refused"))
        code = await cli.run_dashboard(cfg, args)

    assert code == 1


def test_setup_logging_routes_to_event_bus_under_textual(tmp_path):
    from canarydash.ui.event_log_handler import EventLogHandler

    cfg = _minimal_config(tmp_path)
    cfg["logging"].update({"console": True, "level": "debug", "file": str(tmp_path / "logs" / "dash.log")})
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        cli._setup_logging(cfg, textual_ui=object(), event_bus=cli.EventBus())
        kinds = {type(h) for h in root.handlers}
        assert EventLogHandler in kinds
        assert logging.FileHandler in kinds
        assert logging.StreamHandler not in kinds
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
