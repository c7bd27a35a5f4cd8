import logging

import pytest
from rich.logging import RichHandler

from tracker_log import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_console_only(restore_root_logger):
    root = setup_logging("warning")
    assert root.level == logging.WARNING
    assert [type(h) for h in root.handlers] == [RichHandler]


def test_file_log(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "tracker.log"
    setup_logging("INFO", log_file)
    logging.getLogger("reader_store").info("Participant 1 now on page 7")
    for handler in logging.getLogger().handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "INFO reader_store - Participant 1 now on page 7" in text
