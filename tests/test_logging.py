import importlib
import logging
import logging.handlers

import pytest

import logging_config
from logging_config import resolve_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_writes_rotating_file(tmp_path, restore_root_logger):
    path = setup_logging(log_dir=tmp_path / "logs", log_file="api.log", log_level="debug")

    logging.getLogger("services.sound_service").info("deleted a sound")

    assert path == str(tmp_path / "logs" / "api.log")
    assert restore_root_logger.level == logging.DEBUG
    rotating = [h for h in restore_root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1
    rotating[0].flush()
    assert "deleted a sound" in (tmp_path / "logs" / "api.log").read_text(encoding="utf-8")


def test_setup_logging_twice_keeps_one_file_handler(tmp_path, restore_root_logger):
    setup_logging(log_dir=tmp_path, log_file="a.log")
    setup_logging(log_dir=tmp_path, log_file="b.log")

    rotating = [h for h in restore_root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert [h.baseFilename for h in rotating] == [str(tmp_path / "b.log")]


def test_third_party_loggers_are_quieted(tmp_path, restore_root_logger):
    setup_logging(log_dir=tmp_path, log_level=logging.DEBUG)

    assert logging.getLogger("botocore").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
    assert logging.getLogger("pymongo").level == logging.INFO


@pytest.mark.parametrize("value,level", [
    ("INFO", logging.INFO),
    ("warning", logging.WARNING),
    (logging.ERROR, logging.ERROR),
    ("LOUD", logging.INFO),
])
def test_resolve_level(value, level):
    assert resolve_level(value) == level


def test_importing_app_configures_logging(monkeypatch):
    import app

    calls = []
    monkeypatch.setattr(logging_config, "setup_logging", lambda **kwargs: calls.append(kwargs))

    importlib.reload(app)

    assert calls == [{
        "log_dir": app.settings.LOG_DIR,
        "log_file": app.settings.LOG_FILE,
        "log_level": app.settings.LOG_LEVEL,
    }]
