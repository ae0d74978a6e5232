from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends

from config.settings import settings
from database.db import DataStoreClient, get_store
from dependencies.security import get_current_user
from schemas.assignments import UserContext
from schemas.common import Quarter
from services import analytics
from services.records import load_attendance, load_grades, load_students
from services.scope_filter import scope_records

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _scoped_data(store: DataStoreClient, user: UserContext):
    """(students, grades) visible to the caller; grades follow their student's scope."""
    students = scope_records(user, load_students(store))
    by_id = {s.id: s for s in students}
    grades = load_grades(store, students=by_id)
    return students, grades


# ==========================================================
# Dashboards
# ==========================================================

# ✅ [TRENDS] per-student quarter averages and risk level
@router.get("/trends")
def read_performance_trends(
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    students, grades = _scoped_data(store, user)
    rows = []
    for s in students:
        trend = analytics.performance_trend([g for g in grades if g.student_id == s.id])
        rows.append({"student_id": s.id, "student_name": s.full_name, "year_level": s.year_level,
                     "section": s.section, "strand": s.strand, **trend})
    return {"success": True, "data": rows}


# ✅ [AT RISK] students with a real risk factor, highest score first (recent attendance only)
@router.get("/at-risk")
def read_at_risk_students(
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    students, grades = _scoped_data(store, user)
    visible_ids = {s.id for s in students}
    attendance = [a for a in load_attendance(store) if a.student_id in visible_ids]
    since = date.today() - timedelta(days=settings.ATTENDANCE_WINDOW_DAYS)
    rows = analytics.at_risk_students(students, grades, attendance, since=since)
    return {"success": True, "data": rows, "message": f"{len(rows)} students at risk"}


# ✅ [SECTIONS] per-section averages and passing rates
@router.get("/sections")
def read_section_analytics(
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    students, grades = _scoped_data(store, user)
    return {"success": True, "data": analytics.section_summary(students, grades)}


# ✅ [DISTRIBUTION] remark band counts
@router.get("/distribution")
def read_grade_distribution(
    quarter: Optional[Quarter] = None,
    subject: Optional[str] = None,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    _, grades = _scoped_data(store, user)
    if quarter is not None:
        grades = [g for g in grades if g.quarter == quarter]
    if subject is not None:
        grades = [g for g in grades if g.subject == subject]
    return {"success": True, "data": {"total": len(grades), "distribution": analytics.grade_distribution(grades)}}
