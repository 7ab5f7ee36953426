from __future__ import annotations

from ._core import *
from ._core import __all__, __version__

import os as _os
import zoneinfo as _zoneinfo
from pathlib import Path as _Path
from typing import Iterable as _Iterable

TZPATH: tuple[str, ...] = _zoneinfo.TZPATH
"""The paths in which ``chronon`` searches for time zone data.
Mirrors :data:`zoneinfo.TZPATH`, and can be changed with
:func:`chronon.reset_tzpath`.
"""


def reset_tzpath(
    target: _Iterable[str | _os.PathLike[str]] | None = None, /
) -> None:
    """Reset or set the paths in which time zone data is searched for.

    Note
    ----
    Due to caching, looking up a time zone after setting the tzpath
    may not load its data from the new path. Call :func:`clear_tzcache`
    to force loading *all* time zones from the new path.

    Behaves like :func:`zoneinfo.reset_tzpath`, which it calls.
    """
    global TZPATH

    if target is not None:
        # This is such a common mistake, that we raise a descriptive error
        if isinstance(target, (str, bytes)):
            raise TypeError("tzpath must be an iterable of paths")

        target = [str(_Path(p)) for p in target]
        if not all(map(_os.path.isabs, target)):
            raise ValueError("tzpaths must be absolute paths")
        _zoneinfo.reset_tzpath(to=target)
    else:
        _zoneinfo.reset_tzpath()
    TZPATH = _zoneinfo.TZPATH


def clear_tzcache(*, only_keys: _Iterable[str] | None = None) -> None:
    """Clear the time zone cache. If ``only_keys`` is provided, only the
    cache for those keys is cleared.

    Caution
    -------
    Existing :class:`TimeZone` and :class:`DateTime` instances keep the
    data they were created with. Comparisons are unaffected, since they
    work on the absolute moment in time.

    Behaves like :meth:`zoneinfo.ZoneInfo.clear_cache`.
    """
    if only_keys is None:
        _zoneinfo.ZoneInfo.clear_cache()
    else:
        _zoneinfo.ZoneInfo.clear_cache(only_keys=tuple(only_keys))


def available_timezones() -> set[str]:
    """Gather the set of all available time zone names.

    Each call recalculates the names depending on the currently configured
    ``TZPATH`` and the presence of the ``tzdata`` package.

    Warning
    -------
    This function may open a large number of files, since the first few
    bytes of time zone files must be read to determine if they are valid.
    """
    return _zoneinfo.available_timezones()

