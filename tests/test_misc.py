import logging
import subprocess
import sys
import zoneinfo
from datetime import datetime, timezone

import pytest

import chronon
from chronon import (
    DataError,
    DateTime,
    DomainError,
    InvalidArgument,
    InvalidOffset,
    RepeatedTime,
    SkippedTime,
    TimeUnit,
    TimeZone,
    UnknownZone,
    available_timezones,
    clear_tzcache,
    reset_tzpath,
)

from .common import AMS, NYC


def test_exceptions():
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(UnknownZone, InvalidArgument)
    assert issubclass(InvalidOffset, InvalidArgument)
    assert issubclass(SkippedTime, InvalidArgument)
    assert issubclass(RepeatedTime, InvalidArgument)
    assert issubclass(DomainError, ValueError)
    assert not issubclass(DomainError, InvalidArgument)
    assert issubclass(DataError, ValueError)


def test_version():
    from chronon import __version__

    assert isinstance(__version__, str)


def test_public_names_live_in_package():
    for name in chronon.__all__:
        assert getattr(chronon, name).__module__ == "chronon"


def test_no_attr_on_module():
    with pytest.raises((AttributeError, ImportError), match="DoesntExist"):
        from chronon import DoesntExist  # type: ignore[attr-defined] # noqa


@pytest.mark.skipif(
    sys.implementation.name == "pypy",
    reason="time-machine doesn't support PyPy",
)
def test_time_machine():
    import time_machine

    with time_machine.travel(
        datetime(1980, 3, 2, 2, tzinfo=timezone.utc), tick=False
    ):
        assert DateTime.now() == DateTime.create(1980, 3, 2, 2, 0, 0)
        assert DateTime.now(AMS).exact_eq(
            DateTime(1980, 3, 2, 3, tz=AMS)
        )


def test_leap_second_load_is_logged(caplog):
    from chronon._leap import read_embedded

    with caplog.at_level(logging.DEBUG, logger="chronon"):
        data = read_embedded()

    assert len(data.rows) == 28
    assert "Loaded 28 leap second records" in caplog.text
    assert "2026-12-28" in caplog.text


class TestTzpath:

    def test_mirrors_zoneinfo(self):
        reset_tzpath()
        assert chronon.TZPATH == zoneinfo.TZPATH

    def test_custom_path(self, tmp_path):
        try:
            reset_tzpath([tmp_path])
            assert chronon.TZPATH == (str(tmp_path),)
            assert zoneinfo.TZPATH == (str(tmp_path),)
            # zones are still cached
            assert TimeZone(NYC).name == NYC
        finally:
            reset_tzpath()
        assert chronon.TZPATH == zoneinfo.TZPATH

    def test_import_keeps_configured_path(self, tmp_path):
        code = (
            "import zoneinfo\n"
            f"zoneinfo.reset_tzpath(to=[{str(tmp_path)!r}])\n"
            "import chronon\n"
            "print(zoneinfo.TZPATH)\n"
            "print(chronon.TZPATH)\n"
        )
        result = subprocess.run(
            [sys.executable, "-c", code],
            capture_output=True,
            text=True,
            check=True,
        )
        expect = repr((str(tmp_path),))
        assert result.stdout.splitlines() == [expect, expect]

    def test_invalid(self):
        with pytest.raises(TypeError, match="iterable"):
            reset_tzpath("/usr/share/zoneinfo")  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="absolute"):
            reset_tzpath(["../../share/zoneinfo"])


def test_clear_tzcache():
    d = DateTime(2020, 8, 15, 5, 12, tz=AMS)
    clear_tzcache(only_keys=[AMS])
    clear_tzcache()
    # existing values remain usable
    assert d.add(TimeUnit.hours(24)) == DateTime(2020, 8, 16, 5, 12, tz=AMS)
    assert TimeZone(AMS).name == AMS


def test_available_timezones():
    zones = available_timezones()
    assert zones == zoneinfo.available_timezones()
    assert AMS in zones
    assert all(TimeZone.is_valid(z) for z in (AMS, NYC, "UTC"))
