"""
Tests for the delta engine.

Tests cover:
- compute_rate for increasing, equal and decreasing counters
- elapsed time rounding and the zero elapsed rule
- Device set handling between baseline and new snapshot
- Schema mismatch and invalid counter errors
"""

import pytest

from linuxinfo.deltas import (
    check_counter,
    compute_deltas,
    compute_rate,
    compute_rates,
    elapsed_seconds,
)
from linuxinfo.diskstats import DeviceStat
from linuxinfo.errors import ErrorCode, InvalidCounterValueError, SchemaMismatchError
from linuxinfo.snapshot import Snapshot


class TestCheckCounter:
    """Tests for check_counter function."""

    @pytest.mark.parametrize("value", [0, 1, 2 ** 64])
    def test_accepts_non_negative_integers(self, value):
        assert check_counter(value) == value

    @pytest.mark.parametrize("value", [-1, 1.5, "10", None, True])
    def test_rejects_other_values(self, value):
        with pytest.raises(InvalidCounterValueError) as exc_info:
            check_counter(value, 'sda', 'rdreq')
        assert exc_info.value.context['value'] == value
        assert exc_info.value.context['field_name'] == 'rdreq'


class TestComputeRate:
    """Tests for compute_rate function."""

    def test_increasing_counter(self):
        assert compute_rate(100, 150, 10.0) == 5.0

    def test_rounds_to_two_decimals(self):
        assert compute_rate(0, 10, 3.0) == 3.33

    def test_equal_counter(self):
        assert compute_rate(100, 100, 10.0) == 0.0

    def test_decreasing_counter(self):
        """A counter reset is 0.0, not negative and not wrapped."""
        assert compute_rate(500, 10, 5.0) == 0.0

    def test_zero_elapsed_returns_raw_difference(self):
        assert compute_rate(100, 150, 0.0) == 50.0

    def test_negative_elapsed_returns_raw_difference(self):
        """Clock stepped backwards."""
        assert compute_rate(100, 150, -2.0) == 50.0

    def test_validates_both_values(self):
        with pytest.raises(InvalidCounterValueError) as exc_info:
            compute_rate(-1, 5, 1.0, record='sda', field_name='rdreq')
        assert exc_info.value.context['record'] == 'sda'
        with pytest.raises(InvalidCounterValueError):
            compute_rate(1, 2.5, 1.0)

    def test_result_is_float(self):
        assert isinstance(compute_rate(100, 150, 0.0), float)
        assert isinstance(compute_rate(100, 100, 1.0), float)


class TestElapsedSeconds:
    """Tests for elapsed_seconds function."""

    def test_rounds_to_centiseconds(self):
        assert elapsed_seconds(1000.0, 1010.004) == 10.0

    def test_tiny_interval_is_zero(self):
        assert elapsed_seconds(1000.0, 1000.001) == 0.0


class TestComputeRates:
    """Tests for compute_rates function."""

    def test_only_common_keys(self):
        """Keys new in the snapshot are dropped, keys gone from it are omitted."""
        baseline = {'sda': {'rdreq': 1}, 'sdb': {'rdreq': 1}}
        new = {'sda': {'rdreq': 3}, 'sdc': {'rdreq': 9}}
        rates = compute_rates(baseline, new, 1.0)
        assert rates == {'sda': {'rdreq': 2.0}}

    def test_identity_fields_pass_through(self):
        baseline = {'sda': {'major': 8, 'minor': 0, 'rdreq': 1}}
        new = {'sda': {'major': 8, 'minor': 0, 'rdreq': 3}}
        rates = compute_rates(baseline, new, 1.0, identity_fields=('major', 'minor'))
        assert rates['sda'] == {'major': 8, 'minor': 0, 'rdreq': 2.0}

    def test_identity_fields_not_passed_through_by_default(self):
        """Without identity fields every value is treated as a counter."""
        baseline = {'sda': {'major': 8, 'rdreq': 1}}
        new = {'sda': {'major': 8, 'rdreq': 3}}
        assert compute_rates(baseline, new, 1.0)['sda']['major'] == 0.0

    def test_accepts_records_with_to_dict(self):
        baseline = {'sda': DeviceStat(major=8, minor=0, rdreq=100, rdbyt=0, wrtreq=50, wrtbyt=0)}
        new = {'sda': DeviceStat(major=8, minor=0, rdreq=150, rdbyt=0, wrtreq=50, wrtbyt=0)}
        rates = compute_rates(baseline, new, 10.0, identity_fields=('major', 'minor'))
        assert rates['sda']['rdreq'] == 5.0
        assert rates['sda']['ttreq'] == 5.0

    def test_field_missing_from_baseline(self):
        baseline = {'sda': {'rdreq': 1}}
        new = {'sda': {'rdreq': 2, 'wrtreq': 5}}
        with pytest.raises(SchemaMismatchError) as exc_info:
            compute_rates(baseline, new, 1.0)
        assert exc_info.value.code == ErrorCode.SCHEMA_MISMATCH
        assert exc_info.value.context['record'] == 'sda'
        assert exc_info.value.context['field_name'] == 'wrtreq'

    def test_field_missing_from_new_record_is_ignored(self):
        baseline = {'sda': {'rdreq': 1, 'wrtreq': 1}}
        new = {'sda': {'rdreq': 2}}
        assert compute_rates(baseline, new, 1.0) == {'sda': {'rdreq': 1.0}}

    def test_invalid_counter_in_baseline(self):
        baseline = {'sda': {'rdreq': -5}}
        new = {'sda': {'rdreq': 2}}
        with pytest.raises(InvalidCounterValueError):
            compute_rates(baseline, new, 1.0)

    def test_invalid_counter_in_new_record(self):
        baseline = {'sda': {'rdreq': 5}}
        new = {'sda': {'rdreq': 'lots'}}
        with pytest.raises(InvalidCounterValueError):
            compute_rates(baseline, new, 1.0)

    def test_logs_dropped_records(self, capturing_logger):
        compute_rates({}, {'sdc': {'rdreq': 1}}, 1.0, logger=capturing_logger)
        capturing_logger.assert_logged('debug', 'sdc')


class TestComputeDeltas:
    """Tests for compute_deltas function."""

    def test_rates_over_ten_seconds(self):
        old = Snapshot(0.0, {'sda': {'rdreq': 100, 'wrtreq': 50}})
        new = Snapshot(10.0, {'sda': {'rdreq': 150, 'wrtreq': 50}})
        assert compute_deltas(old, new) == {'sda': {'rdreq': 5.0, 'wrtreq': 0.0}}

    def test_counter_reset(self):
        old = Snapshot(0.0, {'sda': {'rdreq': 500}})
        new = Snapshot(5.0, {'sda': {'rdreq': 10}})
        assert compute_deltas(old, new) == {'sda': {'rdreq': 0.0}}

    def test_same_snapshot_gives_zero(self):
        """Comparing a snapshot with itself yields only zero rates."""
        snapshot = Snapshot(42.0, {'sda': {'rdreq': 100, 'wrtreq': 50}, 'sdb': {'rdreq': 7}})
        rates = compute_deltas(snapshot, snapshot)
        assert all(value == 0.0 for record in rates.values() for value in record.values())

    def test_inputs_are_not_mutated(self):
        old = Snapshot(0.0, {'sda': {'rdreq': 100}})
        new = Snapshot(10.0, {'sda': {'rdreq': 150}})
        compute_deltas(old, new)
        assert old.records['sda'] == {'rdreq': 100}
        assert new.records['sda'] == {'rdreq': 150}

    def test_logs_elapsed_time(self, capturing_logger):
        old = Snapshot(0.0, {'sda': {'rdreq': 100}})
        new = Snapshot(2.5, {'sda': {'rdreq': 150}})
        compute_deltas(old, new, logger=capturing_logger)
        capturing_logger.assert_logged('verbose', '2.50s')
