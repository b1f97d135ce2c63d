import logging

import pytest

from writeonly.app import main as app_main


def test_parse_args_defaults():
    args = app_main._parse_args([])
    assert args.webserver is None
    assert args.data_dir is None
    assert args.renderer is None


def test_parse_args_webserver_without_value():
    args = app_main._parse_args(["--webserver", "--renderer", "markdown"])
    assert args.webserver == ""
    assert args.renderer == "markdown"


def test_parse_args_rejects_unknown_renderer():
    with pytest.raises(SystemExit):
        app_main._parse_args(["--renderer", "pandoc"])


@pytest.mark.parametrize(
    "bind, expected",
    [
        ("", ("127.0.0.1", 0)),
        ("0.0.0.0:8080", ("0.0.0.0", 8080)),
        ("localhost", ("localhost", 0)),
        (":9000", ("127.0.0.1", 9000)),
        ("host:notaport", ("host", 0)),
    ],
)
def test_parse_bind(global_config, bind, expected):
    assert app_main._parse_bind(bind) == expected


def test_parse_bind_uses_configured_default(global_config):
    from writeonly.app import config

    config.save_webserver_bind("10.0.0.5", 7000)
    assert app_main._parse_bind("") == ("10.0.0.5", 7000)


@pytest.mark.parametrize("value, enabled", [("1", True), ("true", True), ("0", False), ("false", False), ("", False)])
def test_debug_enabled(monkeypatch, value, enabled):
    monkeypatch.setenv("WRITEONLY_DEBUG_ENGINE", value)
    assert app_main._debug_enabled("WRITEONLY_DEBUG_ENGINE") is enabled


def test_debug_flag_lowers_engine_log_level(monkeypatch):
    monkeypatch.setenv("WRITEONLY_DEBUG_ENGINE", "1")
    engine_logger = logging.getLogger("writeonly.engine")
    previous = engine_logger.level
    try:
        app_main._configure_logging()
        assert engine_logger.level == logging.DEBUG
    finally:
        engine_logger.setLevel(previous)


def test_resolve_data_dir(global_config, tmp_path):
    args = app_main._parse_args(["--data-dir", str(tmp_path / "d")])
    assert app_main._resolve_data_dir(args) == (tmp_path / "d").resolve()
