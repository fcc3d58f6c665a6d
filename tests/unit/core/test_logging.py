"""core/logging.py 테스트"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.constants import Paths
from core.logging import NOISY_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러 복원"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_log_file_path() -> None:
    assert get_log_file_path("worker") == Paths.WORKER_LOGS_DIR / "worker.log"
    assert get_log_file_path("init_db") == Paths.LOGS_DIR / "init_db" / "init_db.log"


def test_setup_logging(restore_root_logger: logging.Logger, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"

    root = setup_logging("worker", console_level=logging.WARNING, log_dir=log_dir)

    assert root is restore_root_logger
    assert (log_dir / "worker.log").exists()
    file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(file_handlers) == 1
    assert len(root.handlers) == 2
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_setup_logging_replaces_handlers(restore_root_logger: logging.Logger, tmp_path: Path) -> None:
    setup_logging("worker", log_dir=tmp_path)
    root = setup_logging("worker", log_dir=tmp_path)

    assert len(root.handlers) == 2
