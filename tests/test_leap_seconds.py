import threading
from concurrent.futures import ThreadPoolExecutor
from copy import copy, deepcopy
from datetime import date

import pytest
from hypothesis import given
from hypothesis.strategies import integers

from chronon import (
    DataError,
    DateTime,
    LeapSecond,
    LeapSeconds,
    TimeEpoch,
    TimePeriod,
    TimeUnit,
)
from chronon import _core, _leap

from .common import SAMPLE_LEAP_DATA, sample_table


class TestLoad:

    def test_cached(self):
        assert LeapSeconds.load() is LeapSeconds.load()

    def test_concurrent_first_use(self, monkeypatch):
        calls = []
        read_embedded = _leap.read_embedded

        def counting_read():
            calls.append(None)
            return read_embedded()

        monkeypatch.setattr(_core, "_DEFAULT_TABLE", None)
        monkeypatch.setattr(_leap, "read_embedded", counting_read)
        barrier = threading.Barrier(8)

        def load(_):
            barrier.wait()
            return LeapSeconds.load()

        with ThreadPoolExecutor(max_workers=8) as pool:
            tables = list(pool.map(load, range(8)))
        assert len(calls) == 1
        assert all(t is tables[0] for t in tables)
        assert tables[0].count() == 28

    def test_contents(self):
        table = LeapSeconds.load()
        assert table.count() == len(table) == 28
        assert table.offset_tai() == TimeUnit.seconds(37)
        assert table.expiration_date() == date(2026, 12, 28)

    def test_first_and_last_records(self):
        records = LeapSeconds.load().all()
        assert records[0] == LeapSecond(
            DateTime.create(1972, 1, 1, 0, 0, 0),
            TimeUnit.seconds(10),
            TimeUnit.seconds(10),
        )
        assert records[-1] == LeapSecond(
            DateTime.create(2017, 1, 1, 0, 0, 0),
            TimeUnit.seconds(37),
            TimeUnit.seconds(1),
        )

    def test_corrections_add_up(self):
        total = TimeUnit.ZERO
        for record in LeapSeconds.load():
            total += record.correction
            assert record.offset_tai == total


class TestUntil:

    @pytest.mark.parametrize(
        "dt, count, offset",
        [
            (DateTime.create(1971, 12, 31, 23, 59, 59), 0, 0),
            (DateTime.create(1972, 1, 1, 0, 0, 0), 1, 10),
            (DateTime.create(1980, 1, 6, 0, 0, 0), 10, 19),
            (DateTime.create(2000, 1, 1, 0, 0, 0), 23, 32),
            (DateTime.create(2016, 12, 31, 23, 59, 59, 999_999), 27, 36),
            (DateTime.create(2017, 1, 1, 0, 0, 0), 28, 37),
            (DateTime.create(2020, 1, 1, 0, 0, 0), 28, 37),
        ],
    )
    def test_examples(self, dt, count, offset):
        view = LeapSeconds.load().until(dt)
        assert view.count() == count
        assert view.offset_tai() == TimeUnit.seconds(offset)

    def test_zone_does_not_matter(self):
        table = LeapSeconds.load()
        assert table.until(
            DateTime(2017, 1, 1, 0, 30, tz="Europe/Amsterdam")
        ).offset_tai() == TimeUnit.seconds(36)

    def test_view_keeps_expiry(self):
        table = LeapSeconds.load()
        view = table.until(DateTime.create(1980, 1, 1, 0, 0, 0))
        assert view.expiration_date() == table.expiration_date()
        assert table.count() == 28  # unaffected


class TestSince:

    def test_strictly_after(self):
        table = LeapSeconds.load()
        assert table.since(DateTime.create(2017, 1, 1, 0, 0, 0)).count() == 0
        assert (
            table.since(DateTime.create(2016, 12, 31, 23, 59, 59)).count()
            == 1
        )

    def test_gps_epoch(self):
        view = LeapSeconds.load().since(TimeEpoch.GPS.date())
        assert view.count() == 18
        assert view.offset_tai() == TimeUnit.seconds(18)

    def test_before_table(self):
        table = LeapSeconds.load()
        assert table.since(DateTime.create(1970, 1, 1, 0, 0, 0)) == table

    @given(integers(-2_000_000_000, 4_000_000_000))
    def test_additivity(self, secs):
        table = LeapSeconds.load()
        dt = DateTime.from_timestamp_unix(secs)
        assert (
            table.until(dt).offset_tai() + table.since(dt).offset_tai()
            == table.offset_tai()
        )
        assert table.until(dt).count() + table.since(dt).count() == 28


class TestBetween:

    def test_forward_and_backward(self):
        table = LeapSeconds.load()
        period = TimePeriod(
            DateTime.create(1980, 1, 6, 0, 0, 0),
            DateTime.create(2020, 1, 1, 0, 0, 0),
        )
        assert table.between(period).count() == 18
        assert table.between(period.revert()) == table.between(period)

    def test_single_insertion(self):
        table = LeapSeconds.load()
        view = table.between(
            TimePeriod(
                DateTime.create(2016, 1, 1, 0, 0, 0),
                DateTime.create(2018, 1, 1, 0, 0, 0),
            )
        )
        assert view.all() == table.all()[-1:]

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            LeapSeconds.load().between(None)  # type: ignore[arg-type]


class TestIsExpired:

    def test_explicit(self):
        table = LeapSeconds.load()
        assert not table.is_expired(DateTime.create(2026, 12, 28, 23, 0, 0))
        assert table.is_expired(DateTime.create(2026, 12, 29, 0, 0, 0))

    def test_compares_utc_date(self):
        table = LeapSeconds.load()
        # still the 28th in UTC
        assert not table.is_expired(
            DateTime(2026, 12, 29, 0, 30, tz="Europe/Amsterdam")
        )

    def test_default_is_now(self):
        assert isinstance(LeapSeconds.load().is_expired(), bool)


class TestParse:

    def test_sample(self):
        table = sample_table()
        assert table.count() == 3
        assert table.offset_tai() == TimeUnit.seconds(12)
        assert table.expiration_date() == date(2020, 6, 28)
        assert table.all()[1] == LeapSecond(
            DateTime.create(1972, 7, 1, 0, 0, 0),
            TimeUnit.seconds(11),
            TimeUnit.seconds(1),
        )

    def test_independent_of_default(self):
        assert sample_table() == sample_table()
        assert sample_table() != LeapSeconds.load()

    def test_negative_leap_second(self):
        table = LeapSeconds.parse(
            SAMPLE_LEAP_DATA + "    41864.0    1  7 1973       11\n"
        )
        assert table.all()[-1].correction == TimeUnit.seconds(-1)
        assert table.offset_tai() == TimeUnit.seconds(11)

    @pytest.mark.parametrize(
        "text, message",
        [
            ("    41317.0    1  1 1972       10\n", "expiration"),
            ("#  File expires on 28 June 2020\n", "no records"),
            ("#  File expires on 28 Foo 2020\n", "expiration date"),
            ("#  File expires on 31 June 2020\n", "expiration date"),
            (SAMPLE_LEAP_DATA + "garbage\n", "unrecognized"),
            (SAMPLE_LEAP_DATA + "    41684.0 1 1 1974 13\n", "MJD"),
            (SAMPLE_LEAP_DATA + "    41684.0 31 2 1974 13\n", "invalid date"),
            (
                SAMPLE_LEAP_DATA + "    41683.0    1  1 1973       12\n",
                "Duplicate",
            ),
            (
                SAMPLE_LEAP_DATA + "    41499.0    1  7 1972       13\n",
                "not sorted",
            ),
            (
                SAMPLE_LEAP_DATA + "    42048.0    1  1 1974       14\n",
                "expected one second",
            ),
            (
                "#  File expires on 28 June 2020\n"
                "    41317.0    1  1 1972       0\n",
                "positive",
            ),
        ],
    )
    def test_invalid(self, text, message):
        with pytest.raises(DataError, match=message):
            LeapSeconds.parse(text)

    def test_data_error_is_value_error(self):
        assert issubclass(DataError, ValueError)


class TestInjection:

    def test_per_call(self):
        table = sample_table()
        d = DateTime.create(2020, 1, 1, 0, 0, 0)
        assert d.to_atomic_time(leap_seconds=table) - d == TimeUnit.seconds(12)
        assert d.timestamp(
            TimeEpoch.TAI, leap_seconds=table
        ) == d.timestamp(TimeEpoch.TAI) - TimeUnit.seconds(25)

    def test_override(self):
        table = sample_table()
        d = DateTime.create(2020, 1, 1, 0, 0, 0)
        default = LeapSeconds.load()
        with LeapSeconds.override(table) as t:
            assert t is table
            assert LeapSeconds.load() is table
            assert d.to_atomic_time() - d == TimeUnit.seconds(12)
        assert LeapSeconds.load() is default
        assert d.to_atomic_time() - d == TimeUnit.seconds(37)

    def test_override_restores_on_error(self):
        default = LeapSeconds.load()
        with pytest.raises(RuntimeError):
            with LeapSeconds.override(sample_table()):
                raise RuntimeError()
        assert LeapSeconds.load() is default

    def test_wrong_types(self):
        d = DateTime.create(2020, 1, 1, 0, 0, 0)
        with pytest.raises(TypeError):
            d.to_atomic_time(leap_seconds="table")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            with LeapSeconds.override(None):  # type: ignore[arg-type]
                pass


class TestInit:

    def test_unsorted(self):
        first, second = sample_table().all()[:2]
        with pytest.raises(DataError, match="sorted"):
            LeapSeconds([second, first], date(2020, 6, 28))

    def test_duplicate(self):
        first = sample_table().all()[0]
        with pytest.raises(DataError, match="unique"):
            LeapSeconds([first, first], date(2020, 6, 28))

    def test_empty(self):
        table = LeapSeconds([], date(2020, 6, 28))
        assert table.count() == 0
        assert table.offset_tai() == TimeUnit.ZERO


def test_record_repr():
    record = LeapSeconds.load().all()[-1]
    assert repr(record) == "LeapSecond(2017-01-01, TAI-UTC=37s)"


def test_repr():
    assert repr(LeapSeconds.load()) == (
        "LeapSeconds(28 records, expires 2026-12-28)"
    )


def test_equality():
    table = LeapSeconds.load()
    assert table == LeapSeconds.load().until(DateTime.create(2020, 1, 1, 0, 0, 0))
    assert hash(table) == hash(
        table.until(DateTime.create(2020, 1, 1, 0, 0, 0))
    )
    assert table != table.until(DateTime.create(2000, 1, 1, 0, 0, 0))
    assert table != 28


def test_immutable():
    table = LeapSeconds.load()
    with pytest.raises(AttributeError):
        table.foo = 2  # type: ignore[attr-defined]
    assert copy(table) is table
    assert deepcopy(table) is table
