from __future__ import annotations

import logging

from rich.logging import RichHandler

import app
import settings


def _capture_basic_config(monkeypatch) -> list[dict]:
    calls: list[dict] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    return calls


def test_logging_disabled_by_default(monkeypatch) -> None:
    calls = _capture_basic_config(monkeypatch)
    monkeypatch.setattr(settings, "LOGGING", {})

    app._configure_logging()

    assert calls == []


def test_verbose_enables_rich_console_at_debug(monkeypatch) -> None:
    calls = _capture_basic_config(monkeypatch)
    monkeypatch.setattr(settings, "LOGGING", {"enabled": False})

    app._configure_logging(verbose=True)

    assert calls[0]["level"] == logging.DEBUG
    [handler] = calls[0]["handlers"]
    assert isinstance(handler, RichHandler)


def test_file_handler_uses_plain_format(monkeypatch, tmp_path) -> None:
    calls = _capture_basic_config(monkeypatch)
    monkeypatch.setattr(settings, "PROJECT_ROOT", str(tmp_path))
    monkeypatch.setattr(
        settings,
        "LOGGING",
        {"enabled": True, "level": "warning", "console": False, "file": {"enabled": True, "path": "logs/run.log"}},
    )

    app._configure_logging()

    [handler] = calls[0]["handlers"]
    try:
        assert calls[0]["level"] == logging.WARNING
        assert handler.baseFilename == str(tmp_path / "logs" / "run.log")
        record = logging.LogRecord("core.processor", logging.WARNING, __file__, 1, "token=%s", ("abc",), None)
        assert handler.format(record).endswith("WARNING core.processor: token=abc")
    finally:
        handler.close()
