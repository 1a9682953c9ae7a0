import logging

import pytest

from airmon import config


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_to_file_and_quiets_access_log(tmp_path, restore_root_logging):
    log_file = tmp_path / "airmon.log"

    config.setup_logging(level="debug", log_file=str(log_file))
    logging.getLogger("airmon.test").debug("hello from the hub")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
    assert "hello from the hub" in log_file.read_text(encoding="utf-8")


def test_unknown_level_falls_back_to_info(restore_root_logging):
    config.setup_logging(level="chatty", log_file="")
    assert logging.getLogger().level == logging.INFO


def test_validate_config_reports_every_problem(monkeypatch):
    monkeypatch.setattr(config, "STORE_CAPACITY", 0)
    monkeypatch.setattr(config, "LOG_FORMAT", "xml")

    with pytest.raises(ValueError) as excinfo:
        config.validate_config()

    assert "STORE_CAPACITY" in str(excinfo.value)
    assert "LOG_FORMAT" in str(excinfo.value)
