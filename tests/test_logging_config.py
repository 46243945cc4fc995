from __future__ import annotations

import io
import logging as py_logging
from pathlib import Path

import pytest

import b2resilience.logging as b2_logging
from b2resilience.config import LOG_LEVEL_ENV, ResilienceConfig
from b2resilience.context import Context
from b2resilience.session import Session


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_resolve_level_accepts_config_spellings() -> None:
    assert b2_logging.resolve_level("warn") == py_logging.WARNING
    assert b2_logging.resolve_level(" Debug ") == py_logging.DEBUG
    assert b2_logging.resolve_level("not-a-level") == py_logging.INFO


def test_loaded_debug_level_lowers_package_logger(make_session, tmp_path: Path) -> None:
    _, root = make_session()
    path = _write_config(tmp_path, 'log_level = "DEBUG"\ninitial_backoff_seconds = 0.25\n')

    session = Session.from_config(root, path, stream=io.StringIO())

    assert py_logging.getLogger("b2resilience").level == py_logging.DEBUG
    assert session.config.log_level == "DEBUG"
    assert session.policy.initial_seconds == 0.25


def test_missing_config_keeps_info_level(make_session, tmp_path: Path) -> None:
    _, root = make_session()

    session = Session.from_config(root, tmp_path / "absent.toml", stream=io.StringIO())

    assert py_logging.getLogger("b2resilience").level == py_logging.INFO
    assert session.config == ResilienceConfig()


def test_env_level_overrides_config_file(
    make_session,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _, root = make_session()
    path = _write_config(tmp_path, 'log_level = "DEBUG"\n')
    monkeypatch.setenv(LOG_LEVEL_ENV, "error")

    Session.from_config(root, path, stream=io.StringIO())

    assert py_logging.getLogger("b2resilience").level == py_logging.ERROR


def test_retry_warnings_reach_configured_stream(make_session, waits, tmp_path: Path) -> None:
    _, root = make_session()
    stream = io.StringIO()
    path = _write_config(tmp_path, 'log_level = "WARN"\n')
    session = Session.from_config(root, path, stream=stream, wait=waits)
    root.fail("create_bucket", ConnectionError("reset"))
    ctx = Context.background()

    session.authorize_account(ctx, "acct", "secret")
    session.create_bucket(ctx, "logs", "allPrivate")

    output = stream.getvalue()
    assert "Transient failure on attempt 1 (ConnectionError)" in output
    assert "Account authorized" not in output
    assert "secret" not in output


def test_log_file_records_debug_regardless_of_level(make_session, waits, tmp_path: Path) -> None:
    _, root = make_session()
    log_file = tmp_path / "logs" / "b2resilience.log"
    path = _write_config(tmp_path, 'log_level = "ERROR"\n')
    session = Session.from_config(root, path, stream=io.StringIO(), log_file=log_file, wait=waits)

    session.authorize_account(Context.background(), "acct", "secret")

    logger = py_logging.getLogger("b2resilience")
    file_handlers = [h for h in logger.handlers if isinstance(h, py_logging.FileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].level == py_logging.DEBUG
    assert log_file.exists()


def test_reconfiguring_replaces_handlers() -> None:
    b2_logging.configure_from_config(ResilienceConfig(), io.StringIO())
    logger = b2_logging.configure_from_config(ResilienceConfig(log_level="DEBUG"), io.StringIO())

    assert len(logger.handlers) == 1
    assert logger.level == py_logging.DEBUG


def test_unwritable_log_file_keeps_console_handler(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(b2_logging.py_logging, "FileHandler", raise_os_error)

    logger = b2_logging.configure_logging("INFO", io.StringIO(), log_file=tmp_path / "nope" / "b.log")

    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is py_logging.StreamHandler
