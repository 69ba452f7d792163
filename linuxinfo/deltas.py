"""
Delta engine: turns two absolute counter snapshots into per-second rates.

The engine works on plain mappings of records (record key -> field -> counter)
so every collector can reuse it. Records that expose ``to_dict()`` (such as
DeviceStat) are converted first.

Rules, per record present on both sides and per non-identity field:
- equal or decreasing counter (reset, reboot, device re-enumeration): 0.0
- positive elapsed time: (new - old) / elapsed, rounded to two decimals
- zero or negative elapsed time: the raw difference

A decrease is never reported as a wrapped-forward delta.
"""

from typing import Any, Dict, Iterable, Mapping

from linuxinfo.errors import InvalidCounterValueError, SchemaMismatchError


def check_counter(value: Any, record: str = None, field_name: str = None) -> int:
    """Return ``value`` if it is a non-negative integer, raise otherwise.

    Raises:
        InvalidCounterValueError: For booleans, non-integers and negative values.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidCounterValueError(
            f"Invalid value for key '{field_name}'",
            record=record,
            field_name=field_name,
            value=value,
        )
    return value


def elapsed_seconds(start: float, end: float) -> float:
    """Seconds between two capture timestamps, rounded to centiseconds.

    Calls closer together than 5 ms round to 0.0 and fall through to the
    raw-difference rule instead of producing huge rates.
    """
    return round(end - start, 2)


def compute_rate(old: int, new: int, elapsed: float,
                 record: str = None, field_name: str = None) -> float:
    """Rate of one counter between two snapshots.

    ``record`` and ``field_name`` only label the error.

    Raises:
        InvalidCounterValueError: If either value is not a non-negative integer.

    Example:
        >>> compute_rate(100, 150, 10.0)
        5.0
        >>> compute_rate(500, 10, 5.0)
        0.0
    """
    old = check_counter(old, record, field_name)
    new = check_counter(new, record, field_name)
    if new <= old:
        return 0.0
    if elapsed > 0:
        return round((new - old) / elapsed, 2)
    return float(new - old)


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if hasattr(record, 'to_dict'):
        return record.to_dict()
    return record


def compute_rates(
    baseline_records: Mapping[str, Any],
    new_records: Mapping[str, Any],
    elapsed: float,
    identity_fields: Iterable[str] = (),
    logger=None,
) -> Dict[str, Dict[str, Any]]:
    """Compute rates for every record present in both mappings.

    Args:
        baseline_records: Records of the baseline snapshot.
        new_records: Records of the new snapshot.
        elapsed: Seconds between the two snapshots.
        identity_fields: Fields copied through unchanged (e.g. major/minor).
        logger: Optional logger for debug output.

    Returns:
        Mapping of record key to field -> rate. Keys only present in
        ``new_records`` are dropped, keys only present in the baseline are
        omitted.

    Raises:
        SchemaMismatchError: If a new record has a field the baseline record lacks.
        InvalidCounterValueError: If a counter on either side is not a non-negative integer.
    """
    identity_fields = frozenset(identity_fields)
    rates: Dict[str, Dict[str, Any]] = {}

    for key, new_record in new_records.items():
        if key not in baseline_records:
            if logger:
                logger.debug(f"Dropping '{key}': not present in baseline")
            continue

        old_values = _as_mapping(baseline_records[key])
        result: Dict[str, Any] = {}
        for field_name, new_value in _as_mapping(new_record).items():
            if field_name in identity_fields:
                result[field_name] = new_value
                continue
            if field_name not in old_values:
                raise SchemaMismatchError(
                    f"Not defined key found '{field_name}'",
                    record=key,
                    field_name=field_name,
                )
            result[field_name] = compute_rate(old_values[field_name], new_value, elapsed,
                                              record=key, field_name=field_name)
        rates[key] = result

    return rates


def compute_deltas(baseline, snapshot, identity_fields: Iterable[str] = (),
                   logger=None) -> Dict[str, Dict[str, Any]]:
    """Compute rates between two Snapshot objects.

    Example:
        >>> old = Snapshot(0.0, {'sda': {'rdreq': 100, 'wrtreq': 50}})
        >>> new = Snapshot(10.0, {'sda': {'rdreq': 150, 'wrtreq': 50}})
        >>> compute_deltas(old, new)
        {'sda': {'rdreq': 5.0, 'wrtreq': 0.0}}
    """
    elapsed = elapsed_seconds(baseline.timestamp, snapshot.timestamp)
    if logger:
        logger.verbose(f"Computing deltas over {elapsed:.2f}s for {len(snapshot.records)} record(s)")
    return compute_rates(baseline.records, snapshot.records, elapsed,
                         identity_fields=identity_fields, logger=logger)
