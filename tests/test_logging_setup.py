import gzip
import io
import logging
import os
import tempfile
from unittest.mock import patch

import pytest

from core.logging_setup import (
    CompressedRotatingFileHandler,
    SafeStreamHandler,
    setup_logging,
)


def _close_handlers(handlers):
    for h in handlers:
        h.close()


class TestCompressedRotatingFileHandler:
    """Test suite for CompressedRotatingFileHandler."""

    def test_rotation_filename(self):
        """Test that rotation_filename returns correct .gz filename."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "helios_bot.log")
            handler = CompressedRotatingFileHandler(log_file, maxBytes=1024, backupCount=3)
            try:
                assert handler.rotation_filename("helios_bot.log.1") == "helios_bot.log.1.gz"
            finally:
                handler.close()

    def test_rotate_compresses_file(self):
        """Test that rotate() compresses source file and removes original."""
        with tempfile.TemporaryDirectory() as tmpdir:
            source_file = os.path.join(tmpdir, "source.log")
            dest_file = os.path.join(tmpdir, "dest.log.gz")
            content = b"Account 1 - Bridge 1: Helios -> Sepolia 0.02 HLS\n"
            with open(source_file, "wb") as f:
                f.write(content)

            handler = CompressedRotatingFileHandler(
                os.path.join(tmpdir, "helios_bot.log"), maxBytes=1024, backupCount=3
            )
            try:
                handler.rotate(source_file, dest_file)
                assert not os.path.exists(source_file)
                with gzip.open(dest_file, "rb") as f:
                    assert f.read() == content
            finally:
                handler.close()

    def test_rollover_produces_gzip_backup(self):
        """Test that an actual size-triggered rollover leaves a .gz backup."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "helios_bot.log")
            handler = CompressedRotatingFileHandler(log_file, maxBytes=200, backupCount=2)
            handler.setFormatter(logging.Formatter("%(message)s"))
            record_logger = logging.getLogger("test.rollover")
            record_logger.propagate = False
            record_logger.addHandler(handler)
            try:
                for i in range(20):
                    record_logger.warning("line %d %s", i, "x" * 20)
            finally:
                record_logger.removeHandler(handler)
                handler.close()
            assert os.path.exists(log_file + ".1.gz")


class TestSafeStreamHandler:
    """Test suite for SafeStreamHandler."""

    def test_unencodable_characters_are_replaced(self):
        raw = io.BytesIO()
        stream = io.TextIOWrapper(raw, encoding="ascii")
        handler = SafeStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(message)s"))
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "Helios ⮞ Sepolia", None, None)

        handler.emit(record)
        stream.flush()

        assert raw.getvalue() == b"Helios ? Sepolia\n"


class TestSetupLogging:
    """Test suite for setup_logging function."""

    @pytest.mark.parametrize("level,expected", [
        (None, logging.INFO),
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("INVALID_LEVEL", logging.INFO),
    ])
    def test_levels(self, tmp_path, level, expected):
        with patch("logging.basicConfig") as mock_basic_config:
            if level is None:
                setup_logging(log_file=str(tmp_path / "bot.log"))
            else:
                setup_logging(level, log_file=str(tmp_path / "bot.log"))
            call_kwargs = mock_basic_config.call_args[1]
            _close_handlers(call_kwargs["handlers"])
            assert call_kwargs["level"] == expected

    def test_creates_file_and_stream_handlers(self, tmp_path):
        log_file = tmp_path / "nested" / "bot.log"
        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging(log_file=str(log_file))
            call_kwargs = mock_basic_config.call_args[1]
            handlers = call_kwargs["handlers"]
            _close_handlers(handlers)

        assert len(handlers) == 2
        assert isinstance(handlers[0], CompressedRotatingFileHandler)
        assert isinstance(handlers[1], SafeStreamHandler)
        assert call_kwargs["force"] is True
        assert log_file.parent.is_dir()

    def test_format(self, tmp_path):
        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging(log_file=str(tmp_path / "bot.log"))
            call_kwargs = mock_basic_config.call_args[1]
            _close_handlers(call_kwargs["handlers"])
        format_str = call_kwargs["format"]
        for part in ("%(asctime)s", "%(levelname)s", "%(name)s", "%(message)s"):
            assert part in format_str
