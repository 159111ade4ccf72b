"""Unit tests for export line sinks."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

from buildvcs.sinks import FileLogSink, InMemoryLineSink


class TestInMemoryLineSink:
    def test_collects(self):
        sink = InMemoryLineSink()
        sink.write_line("one")
        sink.write_line("two")
        assert sink.lines == ["one", "two"]


class TestFileLogSink:
    """Test FileLogSink."""

    def test_writes_logger_and_file(self, tmp_path):
        line_logger = MagicMock(spec=logging.Logger)
        log_path = tmp_path / "logs" / "export.log"

        with FileLogSink(line_logger, log_path) as sink:
            sink.write_line("Exported revision 42.")
            sink.write_line("")

        assert log_path.read_text() == "Exported revision 42.\n\n"
        line_logger.info.assert_called_once_with("Exported revision 42.")

    def test_unwritable_file_falls_back_to_logger(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        line_logger = MagicMock(spec=logging.Logger)

        sink = FileLogSink(line_logger, blocker / "export.log")
        sink.write_line("still logged")
        sink.close()

        line_logger.info.assert_called_once_with("still logged")

    def test_close_idempotent(self, tmp_path):
        sink = FileLogSink(logging.getLogger("test"), tmp_path / "x.log")
        sink.close()
        sink.close()
