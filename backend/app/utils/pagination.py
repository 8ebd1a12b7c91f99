"""
Pagination parameters for list endpoints.

Query strings arrive untyped; page and limit are coerced the forgiving way
(leading integer, junk falls back to the default) and clamped rather than
rejected.
"""

import re
from dataclasses import dataclass
from typing import Optional

from app.utils.envelope import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: Optional[int]  # None when fetching everything
    skip: Optional[int]
    fetch_all: bool = False

    @property
    def effective_limit(self) -> int:
        return self.limit or DEFAULT_LIMIT


def parse_int(value: Optional[str]) -> Optional[int]:
    """Leading integer of value ("12abc" -> 12, "2.9" -> 2), or None"""
    if value is None:
        return None
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def is_truthy_flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() == "true"


def resolve_page_request(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    fetch_all: bool = False,
) -> PageRequest:
    page_num = parse_int(page)
    page_num = max(DEFAULT_PAGE, page_num if page_num is not None else DEFAULT_PAGE)

    if fetch_all:
        return PageRequest(page=page_num, limit=None, skip=None, fetch_all=True)

    limit_num = parse_int(limit)
    limit_num = DEFAULT_LIMIT if limit_num is None else min(MAX_LIMIT, max(1, limit_num))
    return PageRequest(page=page_num, limit=limit_num, skip=(page_num - 1) * limit_num)


def build_pagination(request: PageRequest, total: int) -> Optional[Pagination]:
    """Pagination block for the envelope; None in fetch-all mode"""
    if request.fetch_all:
        return None
    return Pagination.for_total(page=request.page, limit=request.effective_limit, total=total)
