"""
SQL result helpers.

Aggregates come back as a plain int from session.exec(...).one() but as a
1-tuple/Row when the select has several columns or goes through
session.execute(). scalar_int() accepts either.
"""
from typing import Any


def scalar_int(value: Any) -> int:
    """COUNT/aggregate result as int; None counts as 0"""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value[0])
    except (TypeError, IndexError):
        return int(value)
