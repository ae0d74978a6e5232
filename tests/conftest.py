import itertools
from collections import defaultdict
from enum import Enum

import pytest
from fastapi.testclient import TestClient

from database.db import get_store
from main import app


class FakeStore:
    """In-memory stand-in for DataStoreClient (same method names, equality filters only)."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.users = {}
        self._ids = itertools.count(1)

    @staticmethod
    def _norm(value):
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, bool):
            return "true" if value else "false"
        return None if value is None else str(value)

    def _match(self, row, filters):
        return all(
            self._norm(row.get(k)) == self._norm(v)
            for k, v in (filters or {}).items()
            if v is not None
        )

    def select(self, table, filters=None, order=None):
        rows = [dict(r) for r in self.tables[table] if self._match(r, filters)]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: (r.get(column) is None, str(r.get(column) or "")),
                      reverse=direction == "desc")
        return rows

    def insert(self, table, row):
        row = dict(row)
        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables[table].append(row)
        return dict(row)

    def update(self, table, filters, values):
        changed = []
        for row in self.tables[table]:
            if self._match(row, filters):
                row.update(values)
                changed.append(dict(row))
        return changed

    def delete(self, table, filters):
        removed = [dict(r) for r in self.tables[table] if self._match(r, filters)]
        self.tables[table] = [r for r in self.tables[table] if not self._match(r, filters)]
        return removed

    def get_user(self, token):
        return self.users.get(token)


def _student(id, first, last, year_level, section, strand=None):
    return {
        "id": id, "first_name": first, "last_name": last,
        "student_id_no": f"ID-{id}", "student_lrn": f"LRN-{id}",
        "year_level": year_level, "section": section, "strand": strand,
    }


def _grade(id, student_id, subject, quarter, ww, pt, qa, final, remarks):
    return {
        "id": id, "student_id": student_id, "subject": subject, "quarter": quarter,
        "written_work": ww, "performance_task": pt, "quarterly_assessment": qa,
        "final_grade": final, "remarks": remarks,
    }


@pytest.fixture
def store():
    s = FakeStore()

    # ✅ users: one admin, one advisor with two assignments, one advisor without any
    s.users = {
        "admin-token": {"id": "u-admin", "email": "admin@school.test"},
        "advisor-token": {"id": "u-adv", "email": "advisor@school.test"},
        "lonely-token": {"id": "u-lonely", "email": "lonely@school.test"},
    }
    s.tables["profiles"] = [
        {"id": "p-admin", "user_id": "u-admin", "role": "admin"},
        {"id": "p-adv", "user_id": "u-adv", "role": "advisor"},
        {"id": "p-lonely", "user_id": "u-lonely", "role": "advisor"},
    ]
    s.tables["advisors"] = [{"id": "a-1", "profile_id": "p-adv"}]
    s.tables["advisor_assignments"] = [
        {"id": "as-1", "advisor_id": "a-1", "year_level": "7", "section": "Archimedes",
         "strand": None, "subjects": ["Math", "Science"]},
        {"id": "as-2", "advisor_id": "a-1", "year_level": "11", "section": "Maxwell",
         "strand": "stem", "subjects": ["General Mathematics"]},
    ]

    s.tables["students"] = [
        _student("s1", "Ana", "Reyes", "7", "Archimedes"),
        _student("s2", "Ben", "Santos", "7", "Laplace"),
        _student("s3", "Carla", "Cruz", "11", "Maxwell", "stem"),
        _student("s4", "Dino", "Garcia", "11", "Maxwell", "abm"),
    ]
    s.tables["subjects"] = [
        {"id": "sub-1", "name": "Math", "grade_level": "7", "is_active": True},
        {"id": "sub-2", "name": "Science", "grade_level": "7", "is_active": True},
        {"id": "sub-3", "name": "English", "grade_level": "7", "is_active": True},
        {"id": "sub-4", "name": "TLE", "grade_level": "7", "is_active": False},
    ]
    s.tables["grades"] = [
        _grade("g1", "s1", "Math", "1st", 80, 90, 70, 82.5, "Satisfactory"),
        _grade("g2", "s2", "Math", "1st", 60, 60, 60, 60.0, "Did Not Meet Expectations"),
        _grade("g3", "s3", "General Mathematics", "1st", 95, 92, 90, 92.25, "Outstanding"),
        _grade("g4", "s4", "General Mathematics", "1st", 85, 85, 85, 85.0, "Very Satisfactory"),
    ]
    s.tables["attendance"] = [
        {"id": "att-1", "student_id": "s1", "date": "2025-09-22", "status": "present"},
        {"id": "att-2", "student_id": "s1", "date": "2025-09-23", "status": "late"},
        {"id": "att-3", "student_id": "s2", "date": "2025-09-22", "status": "absent"},
    ]
    return s


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin():
    return auth("admin-token")


@pytest.fixture
def advisor():
    return auth("advisor-token")


@pytest.fixture
def lonely():
    return auth("lonely-token")
