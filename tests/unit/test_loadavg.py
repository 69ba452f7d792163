"""
Tests for the load average reader.
"""

import pytest

from linuxinfo.config import ProcFiles
from linuxinfo.errors import ErrorCode, ParseFailureError, SourceUnavailableError
from linuxinfo.loadavg import LoadAVG, LoadAverage, parse_loadavg
from tests.fixtures.sample_data import SAMPLE_LOADAVG


class TestParseLoadavg:
    """Tests for parse_loadavg function."""

    def test_parses_three_averages(self):
        assert parse_loadavg(SAMPLE_LOADAVG) == LoadAverage(avg_1=0.5, avg_5=0.75, avg_15=0.8)

    def test_three_fields_are_enough(self):
        assert parse_loadavg("1.00 2.00 3.00").avg_15 == 3.0

    @pytest.mark.parametrize("content", ["", "0.50 0.75", "a b c d e"])
    def test_rejects_malformed_content(self, content):
        with pytest.raises(ParseFailureError) as exc_info:
            parse_loadavg(content, path='/proc/loadavg')
        assert exc_info.value.code == ErrorCode.PARSE_NO_MATCH
        assert exc_info.value.paths == ['/proc/loadavg']

    def test_to_dict(self):
        assert parse_loadavg(SAMPLE_LOADAVG).to_dict() == {'avg_1': 0.5, 'avg_5': 0.75, 'avg_15': 0.8}


class TestLoadAVG:
    """Tests for the LoadAVG reader."""

    def test_get(self, write_proc, proc_files):
        write_proc(loadavg=SAMPLE_LOADAVG)
        stat = LoadAVG(proc_files).get()
        assert stat.avg_1 == 0.5

    def test_reads_fresh_values_each_call(self, write_proc, proc_files):
        reader = LoadAVG(proc_files)
        write_proc(loadavg=SAMPLE_LOADAVG)
        assert reader.get().avg_1 == 0.5
        write_proc(loadavg="3.10 2.00 1.00 1/200 999\n")
        assert reader.get().avg_1 == 3.1

    def test_missing_file(self, proc_files):
        with pytest.raises(SourceUnavailableError) as exc_info:
            LoadAVG(proc_files).get()
        assert exc_info.value.code == ErrorCode.SOURCE_NOT_FOUND

    def test_empty_file(self, write_proc, proc_files):
        write_proc(loadavg="")
        with pytest.raises(ParseFailureError):
            LoadAVG(proc_files).get()

    def test_defaults_to_proc(self):
        assert LoadAVG().files == ProcFiles()
