import logging
from logging.handlers import RotatingFileHandler

from vct.logging_utils import setup_logger


def _close(logger):
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


def test_console_and_rotating_file(tmp_path):
    logger = setup_logger(logs_dir=str(tmp_path / "logs"), name="vct-test-file")
    try:
        kinds = sorted(type(h).__name__ for h in logger.handlers)
        assert kinds == ["RotatingFileHandler", "StreamHandler"]
        logger.info("hello")
        for h in logger.handlers:
            h.flush()
        assert "hello" in (tmp_path / "logs" / "vct-test-file.log").read_text()
    finally:
        _close(logger)


def test_repeated_setup_replaces_handlers(tmp_path):
    first = setup_logger(logs_dir=str(tmp_path / "a"), name="vct-test-repeat")
    try:
        second = setup_logger(logs_dir=str(tmp_path / "b"), name="vct-test-repeat", verbose=True)
        assert second is first
        assert len(second.handlers) == 2
        files = [h for h in second.handlers if isinstance(h, RotatingFileHandler)]
        assert files[0].baseFilename == str(tmp_path / "b" / "vct-test-repeat.log")
        assert second.level == logging.DEBUG
    finally:
        _close(first)


def test_console_only(tmp_path):
    logger = setup_logger(logs_dir=None, name="vct-test-console")
    try:
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
        assert logger.level == logging.INFO
    finally:
        _close(logger)
