"""
Tests for session logging (TeeOutput) and debug_log.
"""

import sys
import tempfile
from pathlib import Path

import pytest

from drivegallery.core.logging import TeeOutput, debug_log, open_session_log


@pytest.fixture
def log_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "session.log"


def log_lines(path: Path) -> list[str]:
    """Logged lines without the session header or timestamps."""
    lines = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if line.startswith("[") and "] " in line:
            lines.append(line.split("] ", 1)[1])
    return lines


class TestTeeOutput:

    def test_header_includes_version(self, log_path):
        tee = TeeOutput(log_path, version="1.2.3")
        tee.close()
        assert "Session started:" in log_path.read_text()
        assert "v1.2.3" in log_path.read_text()

    def test_lines_logged_with_timestamp(self, log_path, capsys):
        tee = TeeOutput(log_path)
        tee.write("Resolved 3 covers\n")
        tee.close()

        assert log_lines(log_path) == ["Resolved 3 covers"]
        assert "Resolved 3 covers" in capsys.readouterr().out

    def test_progress_counters_skipped(self, log_path):
        tee = TeeOutput(log_path)
        tee.write("\r  Fetching 1/3")
        tee.write("\r  Fetching 3/3\n")
        tee.write("\r  Compressing 50%")
        tee.write("\r  Compressing 100%\n")
        tee.write("Saved gallery.zip\n")
        tee.close()

        assert log_lines(log_path) == ["Saved gallery.zip"]

    def test_ansi_codes_stripped(self, log_path):
        tee = TeeOutput(log_path)
        tee.write("\x1b[1mAlbums\x1b[0m\n")
        tee.close()
        assert log_lines(log_path) == ["Albums"]

    def test_partial_line_flushed_on_close(self, log_path):
        tee = TeeOutput(log_path)
        tee.write("no newline")
        tee.close()
        assert log_lines(log_path) == ["no newline"]

    def test_context_manager_installs_on_stdout(self, log_path):
        original = sys.stdout
        with TeeOutput(log_path) as tee:
            assert sys.stdout is tee
            print("Exported 2 files")

        assert sys.stdout is original
        assert tee.log_file.closed
        assert log_lines(log_path) == ["Exported 2 files"]

    def test_session_log_named_by_date(self, log_path):
        tee = open_session_log(log_path.parent, version="0.1.0")
        tee.close()

        assert tee.log_path.parent == log_path.parent
        assert len(tee.log_path.stem) == len("YYYY-MM-DD")
        assert tee.log_path.suffix == ".log"


class TestDebugLog:

    def test_written_to_log_only(self, log_path, monkeypatch, capsys):
        tee = TeeOutput(log_path)
        monkeypatch.setattr(sys, "stdout", tee)

        debug_log("retrying in 1s")
        monkeypatch.setattr(sys, "stdout", tee.terminal)
        tee.close()

        assert log_lines(log_path) == ["retrying in 1s"]
        assert "retrying" not in capsys.readouterr().out

    def test_noop_without_tee(self):
        debug_log("nothing happens")
