"""
Session logging for Drive Gallery.

The CLI mirrors everything it prints into a dated log file under the data
directory's logs/ folder. Library code never prints; it reports per-key
failures and retries through debug_log(), which only reaches the log file.
"""

import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[mKHJ]")

# Lines the log file doesn't need: blanks, live counters, progress bars
_NOISE = re.compile("|".join([
    r"^\s*$",
    r"^\s*(Fetching|Compressing|Indexing)\b.*\d+%?\s*$",
    r"[█░▒▓]",
]))


def _stamp(line: str) -> str:
    return f"{datetime.now().strftime('[%H:%M:%S]')} {line}\n"


class TeeOutput:
    """
    stdout replacement that also appends finished lines to a log file.

    Carriage-return rewrites (live counters) only log their final state, and
    lines matching the noise filter are shown but not logged. Use as a context
    manager to install it on sys.stdout for the duration of a command.
    """

    def __init__(self, log_path: Path, version: Optional[str] = None):
        self.terminal = sys.stdout
        self.log_path = log_path
        self.log_file = open(log_path, "a", encoding="utf-8")
        self._pending = ""

        rule = "=" * 60
        suffix = f" v{version}" if version else ""
        self.log_file.write(f"\n{rule}\nSession started: {datetime.now().isoformat()}{suffix}\n{rule}\n\n")
        self.log_file.flush()

    def __enter__(self) -> "TeeOutput":
        sys.stdout = self
        return self

    def __exit__(self, *exc_info):
        if sys.stdout is self:
            sys.stdout = self.terminal
        self.close()

    def write(self, message: str):
        self.terminal.write(message)

        self._pending += _ANSI_ESCAPE.sub("", message)
        *lines, self._pending = self._pending.split("\n")
        for line in lines:
            self._log_line(line.rsplit("\r", 1)[-1])

        # A partial line being redrawn in place: keep only its latest state
        self._pending = self._pending.rsplit("\r", 1)[-1]
        self.log_file.flush()

    def flush(self):
        self.terminal.flush()
        self.log_file.flush()

    def close(self):
        if self.log_file.closed:
            return
        self._log_line(self._pending)
        self._pending = ""
        self.log_file.close()

    def log_only(self, message: str):
        """Append a message to the log file without showing it."""
        self.log_file.write(_stamp(message))
        self.log_file.flush()

    def _log_line(self, line: str):
        line = line.rstrip()
        if line and not _NOISE.search(line):
            self.log_file.write(_stamp(line))


def open_session_log(logs_dir: Path, version: Optional[str] = None) -> TeeOutput:
    """TeeOutput appending to today's log (logs_dir/YYYY-MM-DD.log)."""
    return TeeOutput(logs_dir / f"{datetime.now().strftime('%Y-%m-%d')}.log", version=version)


def debug_log(message: str):
    """Log a debug message to file only (not shown to user)."""
    if hasattr(sys.stdout, "log_only"):
        sys.stdout.log_only(message)
    # Without a TeeOutput installed (library use, tests) this is a no-op
