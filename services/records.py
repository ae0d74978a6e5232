"""
services/records.py

- Reads rows from the data store and turns them into validated schemas.
- Grades are joined with their student's year level / section / strand so the
  scope filter can treat them like students.
"""

import logging
from typing import Dict, List, Optional

from database.db import DataStoreClient, DataStoreError
from schemas.assignments import Assignment, UserContext
from schemas.attendance import AttendanceRecord
from schemas.common import Role, YearLevel
from schemas.grades import Grade, GradeWeights
from schemas.grading_systems import GradingSystem
from schemas.students import Student
from services.grade_calculator import configured_default_weights, weights_from_percentages

logger = logging.getLogger(__name__)


# ==========================================================
# Students
# ==========================================================

def to_student(row: dict) -> Student:
    """Stored rows may carry a strand on a junior-high student; it is dropped on read."""
    if row.get("strand") is not None and YearLevel(row["year_level"]).is_junior_high:
        logger.warning("student %s: ignoring strand %r on year level %s", row.get("id"), row["strand"], row["year_level"])
        row = {**row, "strand": None}
    return Student(**row)


def load_students(store: DataStoreClient, **filters) -> List[Student]:
    rows = store.select("students", filters, order="last_name.asc")
    return [to_student(r) for r in rows]


def get_student(store: DataStoreClient, student_id: str) -> Optional[Student]:
    rows = store.select("students", {"id": student_id})
    return to_student(rows[0]) if rows else None


# ==========================================================
# Grades
# ==========================================================

def _scope_of(student: Student) -> dict:
    return {"year_level": student.year_level, "section": student.section, "strand": student.strand}


def to_grade(row: dict, student: Student) -> Grade:
    return Grade(**{**row, **_scope_of(student)})


def load_grades(store: DataStoreClient, students: Optional[Dict[str, Student]] = None, **filters) -> List[Grade]:
    """Grades whose student still exists, joined with the student's scope."""
    if students is None:
        students = {s.id: s for s in load_students(store)}
    grades = []
    for row in store.select("grades", filters):
        student = students.get(row["student_id"])
        if student is None:
            logger.warning("grade %s references unknown student %s", row.get("id"), row["student_id"])
            continue
        grades.append(to_grade(row, student))
    return grades


def get_grade(store: DataStoreClient, grade_id: str) -> Optional[Grade]:
    rows = store.select("grades", {"id": grade_id})
    if not rows:
        return None
    student = get_student(store, rows[0]["student_id"])
    return to_grade(rows[0], student) if student else None


# ==========================================================
# Attendance
# ==========================================================

def load_attendance(store: DataStoreClient, **filters) -> List[AttendanceRecord]:
    return [AttendanceRecord(**r) for r in store.select("attendance", filters, order="date.asc")]


# ==========================================================
# Users / assignments
# ==========================================================

def load_assignments(store: DataStoreClient, profile_id: str) -> List[Assignment]:
    advisors = store.select("advisors", {"profile_id": profile_id})
    if not advisors:
        return []
    rows = store.select("advisor_assignments", {"advisor_id": advisors[0]["id"]})
    return [Assignment(**r) for r in rows]


def load_user_context(store: DataStoreClient, user: dict) -> UserContext:
    """Role and (for advisors) assignments of an authenticated user."""
    profiles = store.select("profiles", {"user_id": user["id"]})
    if not profiles:
        logger.warning("user %s has no profile; treating as advisor without assignments", user["id"])
        return UserContext(user_id=user["id"], email=user.get("email"))

    profile = profiles[0]
    role = Role(profile.get("role") or Role.ADVISOR)
    assignments = [] if role == Role.ADMIN else load_assignments(store, profile["id"])
    return UserContext(user_id=user["id"], email=user.get("email"), role=role, assignments=assignments)


# ==========================================================
# Grading system
# ==========================================================

def active_grading_system(store: DataStoreClient) -> Optional[GradingSystem]:
    rows = store.select("grading_systems", {"is_active": "true"})
    return GradingSystem(**rows[0]) if rows else None


def active_weights(store: DataStoreClient) -> GradeWeights:
    """Weights of the active grading system, falling back to the configured defaults."""
    try:
        system = active_grading_system(store)
    except DataStoreError:
        logger.warning("could not load grading system, using default weights", exc_info=True)
        return configured_default_weights()
    if system is None:
        logger.info("no active grading system, using default weights")
        return configured_default_weights()
    return weights_from_percentages(
        system.written_work_percentage,
        system.performance_task_percentage,
        system.quarterly_assessment_percentage,
    )
