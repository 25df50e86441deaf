# storesync/ids.py
from typing import NewType, Union

ResourceId = NewType("ResourceId", str)

RawId = Union[int, float, str]


def normalize(value: RawId) -> ResourceId:
    """
    Canonical string form of a numeric-or-string resource identifier.

    7, 7.0 and "7" all map to "7". Strings are returned untouched so that
    ids differing only in case or whitespace stay distinct.
    """
    if isinstance(value, str):
        return ResourceId(value)
    if isinstance(value, bool):
        return ResourceId(str(int(value)))
    if isinstance(value, int):
        return ResourceId(str(value))
    if isinstance(value, float) and value.is_integer():
        return ResourceId(str(int(value)))
    return ResourceId(repr(value))
