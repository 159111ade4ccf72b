"""Process execution boundary.

Backends drive external VCS clients only through `ProcessRunner`; the
subprocess-based implementation lives in `subprocess_runner`.
"""

from .interface import LineStream, ProcessError, ProcessResult, ProcessRunner, check
from .subprocess_runner import NOT_FOUND_STATUS, SubprocessRunner, suppress_stderr

__all__ = [
    "LineStream",
    "NOT_FOUND_STATUS",
    "ProcessError",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
    "check",
    "suppress_stderr",
]
