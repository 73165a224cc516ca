"""List pagination shared by every list endpoint."""
from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

from arena_api.core.contracts import GenericListResult

T = TypeVar("T")


def paginate(
    records: Iterable[T],
    start: Optional[int] = 0,
    max: Optional[int] = 0,
    convert: Optional[Callable[[T], object]] = None,
    include: Optional[Callable[[T], bool]] = None,
    item_name: Optional[str] = None,
) -> GenericListResult:
    """Window ``records`` into a GenericListResult.

    Total counts every record passing ``include`` (post permission filter,
    pre pagination). Items holds at most ``max`` converted records starting
    at offset ``start``; ``max <= 0`` means unbounded. Only records that end
    up in the window are converted.

    Args:
        records: Source records in output order
        start: 0-based offset of the first item to return
        max: Page size, <= 0 for all remaining
        convert: Maps a record to its contract (identity when omitted)
        include: Permission/filter predicate; excluded records do not count
        item_name: XML element name for primitive items

    Returns:
        GenericListResult echoing start/max
    """
    start = start if start and start > 0 else 0
    limit = max or 0

    result = GenericListResult(start=start, max=limit, item_name=item_name)
    for record in records:
        if include is not None and not include(record):
            continue
        if result.total >= start and (limit <= 0 or len(result.items) < limit):
            result.items.append(convert(record) if convert else record)
        result.total += 1
    return result


def full_list(records: Iterable[T], convert: Optional[Callable[[T], object]] = None,
              item_name: Optional[str] = None) -> GenericListResult:
    """Unpaginated list: Start is 0 and Max equals Total."""
    result = paginate(records, 0, 0, convert=convert, item_name=item_name)
    result.max = result.total
    return result
