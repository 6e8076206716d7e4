import logging

import pytest

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.logging_config import EDITING_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    for name in (EDITING_LOGGER, "mjml_toolkit.cli"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    root.setLevel(saved_level)


def test_setup_from_packaged_config(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("MJML_TOOLKIT_LOG_DIR", str(log_dir))
    setup_logging()
    assert (log_dir / "mjml_toolkit.log").exists()
    assert logging.getLogger(EDITING_LOGGER).level == logging.INFO


def test_minimal_fallback_on_bad_config(tmp_path, monkeypatch, isolated_config):
    monkeypatch.setenv("MJML_TOOLKIT_LOG_DIR", str(tmp_path / "logs"))
    (isolated_config / "logging.yml").write_text(
        "version: 1\nhandlers:\n  broken:\n    class: no.such.Handler\nroot:\n  handlers: [broken]\n",
        encoding="utf-8",
    )
    ConfigManager.reload()
    setup_logging()
    editing = logging.getLogger(EDITING_LOGGER)
    assert editing.level == logging.INFO
    assert any(isinstance(h, logging.StreamHandler) for h in editing.handlers)


def test_debug_modules_override(tmp_path, monkeypatch):
    monkeypatch.setenv("MJML_TOOLKIT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("MJML_TOOLKIT_DEBUG_MODULES", "editing, mjml_toolkit.cli")
    setup_logging()
    assert logging.getLogger(EDITING_LOGGER).level == logging.DEBUG
    assert logging.getLogger("mjml_toolkit.cli").level == logging.DEBUG


def test_loaded_config_is_left_untouched(tmp_path, monkeypatch):
    monkeypatch.setenv("MJML_TOOLKIT_LOG_DIR", str(tmp_path / "logs"))
    setup_logging()
    handlers = ConfigManager().get_logging_config()["handlers"]
    assert handlers["file"]["filename"] == "logs/mjml_toolkit.log"
