"""
services/scope_filter.py

Role-based visibility of students and grades.

An advisor sees a record when at least one of their assignments matches it:
same year level, same section, and either the assignment has no strand or the
strand is equal. A junior-high record (no strand) therefore never matches an
assignment that names a strand. No assignments means no records.
"""

import logging
from typing import Callable, Iterable, List, Sequence, TypeVar, Union

from schemas.assignments import Assignment, UserContext
from schemas.common import YearLevel

logger = logging.getLogger(__name__)

R = TypeVar("R")


def record_matches(record, assignment: Assignment) -> bool:
    if record.year_level != assignment.year_level:
        return False
    if record.section != assignment.section:
        return False
    return assignment.strand is None or record.strand == assignment.strand


def filter_by_assignments(records: Iterable[R], assignments: Sequence[Assignment]) -> List[R]:
    """Records matching any assignment, in input order. Empty assignments -> []."""
    if not assignments:
        return []
    return [r for r in records if any(record_matches(r, a) for a in assignments)]


def dedupe_records(records: Iterable[R], key: Union[str, Callable[[R], object]] = "id") -> List[R]:
    """
    Drop repeated records by identity key.

    The surviving record keeps the position of the first occurrence and the
    value of the last one.
    """
    get_key = key if callable(key) else (lambda r: getattr(r, key))
    seen = {}
    for r in records:
        seen[get_key(r)] = r
    return list(seen.values())


def collect_scoped(batches: Iterable[Iterable[R]], assignments: Sequence[Assignment], key="id") -> List[R]:
    """Merge several query results (e.g. one per assignment), dedupe, then filter."""
    merged = [r for batch in batches for r in batch]
    return filter_by_assignments(dedupe_records(merged, key), assignments)


def filter_subjects_by_assignments(
    all_subjects: Iterable[str],
    year_level: Union[str, YearLevel],
    assignments: Sequence[Assignment],
) -> List[str]:
    """
    Subjects of `all_subjects` granted for `year_level`, sorted.

    Unions the subject lists of every assignment on that year level; when the
    union is empty nothing is visible. An unknown year level grants nothing.
    """
    try:
        year_level = YearLevel(year_level)
    except ValueError:
        return []
    granted = set()
    for a in assignments:
        if a.year_level == year_level and a.subjects:
            granted.update(a.subjects)
    if not granted:
        return []
    return sorted(s for s in set(all_subjects) if s in granted)


# ==========================================================
# Role-aware helpers used by the routers
# ==========================================================

def scope_records(user: UserContext, records: Iterable[R]) -> List[R]:
    if user.is_admin:
        return list(records)
    visible = filter_by_assignments(records, user.assignments)
    if not user.assignments:
        logger.info("user %s has no assignments; hiding all records", user.user_id)
    return visible


def can_edit(user: UserContext, record) -> bool:
    if user.is_admin:
        return True
    return any(record_matches(record, a) for a in user.assignments)
