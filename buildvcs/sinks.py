"""Line sinks receiving diagnostic output of export operations.

`FileLogSink` forwards every line to a logger and persists it to a log file,
so build logs keep a record of what the VCS client printed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol, TextIO

logger = logging.getLogger(__name__)


class LineSink(Protocol):
    def write_line(self, line: str) -> None:  # pragma: no cover - protocol
        ...


class InMemoryLineSink:
    """Collects lines in a list; useful for tests and for callers that parse output."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)


class FileLogSink:
    """LineSink that writes to both a logger and a file."""

    def __init__(
        self,
        line_logger: logging.Logger,
        log_file_path: Path,
    ) -> None:
        """Initialize sink with logger and file destination.

        Args:
            line_logger: Logger receiving each line at INFO level
            log_file_path: Path to log file, created along with its parent
        """
        self.line_logger = line_logger
        self.log_file_path = log_file_path
        self._file_handle: Optional[TextIO] = None

        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(self.log_file_path, "a", encoding="utf-8")
        except OSError as exc:
            # The logger still receives the lines
            logger.warning(
                "Failed to open log file %s: %s. Continuing with logger-only output.",
                self.log_file_path,
                exc,
            )
            self._file_handle = None

    def write_line(self, line: str) -> None:
        if line.strip():
            self.line_logger.info(line)

        if self._file_handle:
            try:
                self._file_handle.write(line + "\n")
                self._file_handle.flush()
            except OSError as exc:
                logger.warning(
                    "Error writing to log file %s: %s", self.log_file_path, exc
                )

    def close(self) -> None:
        """Close log file handle."""
        if self._file_handle:
            try:
                self._file_handle.close()
            finally:
                self._file_handle = None

    def __enter__(self) -> "FileLogSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
