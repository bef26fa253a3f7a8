"""Package version comparison.

Versions have the form ``[epoch:]version[-release]``. Comparison follows libalpm:
the epoch is compared first (a missing epoch is ``0``), then the version, and the
release only when both sides carry one. Each part is compared segment by segment
with :func:`rpmvercmp`.
"""

from __future__ import annotations

from collections.abc import Callable
from string import ascii_letters, digits

VersionComparator = Callable[[str, str], int]

_ALPHA = frozenset(ascii_letters)
_DIGITS = frozenset(digits)
_ALNUM = _ALPHA | _DIGITS


def parse_evr(full: str) -> tuple[str, str, str | None]:
    """Split a full version string into ``(epoch, version, release)``.

    Examples:
        >>> parse_evr("1:2.0-3")
        ('1', '2.0', '3')
        >>> parse_evr("2.0")
        ('0', '2.0', None)

    """
    i = 0
    while i < len(full) and full[i] in _DIGITS:
        i += 1
    if i < len(full) and full[i] == ":":
        epoch = full[:i] or "0"
        rest = full[i + 1 :]
    else:
        epoch = "0"
        rest = full
    version, sep, release = rest.rpartition("-")
    if not sep:
        return epoch, release, None
    return epoch, version, release


def rpmvercmp(a: str, b: str) -> int:
    """Compare two version fragments segment by segment.

    Returns -1, 0 or 1. Numeric segments compare numerically and are newer than alpha
    segments; an alpha segment left over at the end is older than nothing at all, so
    ``1.0a < 1.0 < 1.0.1``.
    """
    if a == b:
        return 0
    i = j = 0
    len_a, len_b = len(a), len(b)
    while i < len_a and j < len_b:
        start_a, start_b = i, j
        while i < len_a and a[i] not in _ALNUM:
            i += 1
        while j < len_b and b[j] not in _ALNUM:
            j += 1
        if i >= len_a or j >= len_b:
            break
        # separator runs of different length decide on their own
        if i - start_a != j - start_b:
            return -1 if i - start_a < j - start_b else 1

        start_a, start_b = i, j
        if a[i] in _DIGITS:
            is_num = True
            while i < len_a and a[i] in _DIGITS:
                i += 1
            while j < len_b and b[j] in _DIGITS:
                j += 1
        else:
            is_num = False
            while i < len_a and a[i] in _ALPHA:
                i += 1
            while j < len_b and b[j] in _ALPHA:
                j += 1

        seg_a, seg_b = a[start_a:i], b[start_b:j]
        if not seg_b:
            # segments of different types: numeric is newer
            return 1 if is_num else -1
        if is_num:
            seg_a = seg_a.lstrip("0")
            seg_b = seg_b.lstrip("0")
            if len(seg_a) != len(seg_b):
                return 1 if len(seg_a) > len(seg_b) else -1
        if seg_a != seg_b:
            return -1 if seg_a < seg_b else 1

    if i >= len_a and j >= len_b:
        return 0
    # whatever is left decides; a trailing alpha segment never beats an empty string
    if (i >= len_a and b[j] not in _ALPHA) or (i < len_a and a[i] in _ALPHA):
        return -1
    return 1


def vercmp(a: str, b: str) -> int:
    """Compare two full package versions, returning -1, 0 or 1."""
    if a == b:
        return 0
    epoch_a, version_a, release_a = parse_evr(a)
    epoch_b, version_b, release_b = parse_evr(b)
    ret = rpmvercmp(epoch_a, epoch_b)
    if ret == 0:
        ret = rpmvercmp(version_a, version_b)
        if ret == 0 and release_a is not None and release_b is not None:
            ret = rpmvercmp(release_a, release_b)
    return ret
