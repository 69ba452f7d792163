"""
Tests for the procfs source reader.
"""

import errno
import os

import pytest

from linuxinfo.errors import ErrorCode, SourceUnavailableError
from linuxinfo.sources import _error_code, read_lines, read_source_lines


class TestReadLines:
    """Tests for read_lines function."""

    def test_strips_newlines(self, tmp_path):
        path = tmp_path / "diskstats"
        path.write_text("line one\nline two\n")
        assert read_lines(str(path)) == ['line one', 'line two']

    def test_empty_file(self, tmp_path):
        path = tmp_path / "diskstats"
        path.write_text("")
        assert read_lines(str(path)) == []

    def test_missing_file(self, tmp_path):
        path = str(tmp_path / "absent")
        with pytest.raises(SourceUnavailableError) as exc_info:
            read_lines(path)
        assert exc_info.value.code == ErrorCode.SOURCE_NOT_FOUND
        assert exc_info.value.paths == [path]
        assert exc_info.value.context['reason']

    def test_directory(self, tmp_path):
        with pytest.raises(SourceUnavailableError) as exc_info:
            read_lines(str(tmp_path))
        assert exc_info.value.code == ErrorCode.SOURCE_UNREADABLE

    def test_binary_content(self, tmp_path):
        path = tmp_path / "diskstats"
        path.write_bytes(b"\xff\xfe\xfa\x00")
        with pytest.raises(SourceUnavailableError) as exc_info:
            read_lines(str(path))
        assert exc_info.value.code == ErrorCode.SOURCE_UNREADABLE

    @pytest.mark.skipif(hasattr(os, 'geteuid') and os.geteuid() == 0,
                        reason="root ignores file permissions")
    def test_permission_denied(self, tmp_path):
        path = tmp_path / "diskstats"
        path.write_text("8 0 sda\n")
        path.chmod(0)
        try:
            with pytest.raises(SourceUnavailableError) as exc_info:
                read_lines(str(path))
            assert exc_info.value.code == ErrorCode.SOURCE_PERMISSION_DENIED
        finally:
            path.chmod(0o644)


class TestErrorCode:
    """Tests for mapping OS errors to error codes."""

    def test_enoent_without_subclass(self):
        assert _error_code(OSError(errno.ENOENT, "missing")) == ErrorCode.SOURCE_NOT_FOUND

    def test_permission_error(self):
        assert _error_code(PermissionError(errno.EACCES, "denied")) == ErrorCode.SOURCE_PERMISSION_DENIED

    def test_other_error(self):
        assert _error_code(OSError(errno.EIO, "i/o")) == ErrorCode.SOURCE_UNREADABLE


class TestReadSourceLines:
    """Tests for read_source_lines function."""

    def test_reads_configured_source(self, write_proc, proc_files):
        write_proc(loadavg="0.50 0.75 0.80 2/500 12345\n")
        assert read_source_lines(proc_files, 'loadavg') == ['0.50 0.75 0.80 2/500 12345']
