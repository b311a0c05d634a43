"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from modelpick import logging_utils


def _reset_logger() -> logging.Logger:
    logger = logging.getLogger("modelpick")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def test_setup_logging_creates_rotating_files(tmp_path: Path):
    logger = _reset_logger()
    log_path = logging_utils.setup_logging(tmp_path, level="INFO")

    assert log_path == tmp_path / "logs" / "modelpick.log"
    assert log_path.exists()

    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, RotatingFileHandler)
    ]
    assert len(file_handlers) == 2
    assert str(log_path) in {handler.baseFilename for handler in file_handlers}


def test_setup_logging_is_idempotent(tmp_path: Path):
    logger = _reset_logger()
    logging_utils.setup_logging(tmp_path, level="INFO")
    handler_count = len(logger.handlers)

    logging_utils.setup_logging(tmp_path, level="INFO")
    assert len(logger.handlers) == handler_count


def test_structured_log_writes_json_lines(tmp_path: Path):
    logger = _reset_logger()
    logging_utils.setup_logging(tmp_path, level="INFO", console=False)

    logging.getLogger("modelpick.overlay").info("Model selected: %s", "o3")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "modelpick.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["logger"] == "modelpick.overlay"
    assert entry["message"] == "Model selected: o3"
    assert entry["level"] == "INFO"


def test_setup_logging_falls_back_when_permission_denied(tmp_path: Path, monkeypatch):
    _reset_logger()
    home_dir = tmp_path / "home"
    primary_parent = home_dir / "logs"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):
        if str(self).startswith(str(primary_parent)):
            raise PermissionError
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    fallback_root = tmp_path / "fallback"
    monkeypatch.setattr(logging_utils, "FALLBACK_ROOT", fallback_root)

    log_path = logging_utils.setup_logging(home_dir, level="INFO")
    expected = fallback_root / "logs" / "modelpick.log"

    assert log_path == expected
    assert expected.exists()
