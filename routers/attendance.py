from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from database.db import DataStoreClient, get_store
from dependencies.security import get_current_user
from schemas.assignments import UserContext
from schemas.attendance import AttendanceCreate, AttendanceRecord
from services.analytics import attendance_summary
from services.records import get_student, load_attendance, load_students
from services.scope_filter import can_edit, scope_records

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _visible_attendance(store: DataStoreClient, user: UserContext, **filters):
    """Attendance rows of the students the caller can see."""
    visible_ids = {s.id for s in scope_records(user, load_students(store))}
    return [r for r in load_attendance(store, **filters) if r.student_id in visible_ids]


# ✅ [READ] attendance of one school day (or all days)
@router.get("/")
def read_attendance(
    date: Optional[date_type] = Query(None, description="school day, e.g. 2025-09-26"),
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    records = _visible_attendance(store, user, date=date)
    return {"success": True, "data": [r.model_dump(mode="json") for r in records]}


# ✅ [SUMMARY] status counts and attendance rate
@router.get("/summary")
def read_attendance_summary(
    date: Optional[date_type] = Query(None, description="school day; omit for all days"),
    student_id: Optional[str] = None,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    records = _visible_attendance(store, user, date=date, student_id=student_id)
    return {"success": True, "data": attendance_summary(records).model_dump()}


# ✅ [UPSERT] one record per student per day
@router.post("/")
def mark_attendance(
    record: AttendanceCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    student = get_student(store, record.student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    if not can_edit(user, student):
        raise HTTPException(status_code=403, detail="Student is outside your assignments")

    values = record.model_dump(mode="json")
    key = {"student_id": record.student_id, "date": values["date"]}
    existing = store.select("attendance", key)
    if existing:
        store.update("attendance", {"id": existing[0]["id"]}, values)
        saved = AttendanceRecord(**{**existing[0], **values})
        message = "Attendance updated"
    else:
        saved = AttendanceRecord(**store.insert("attendance", values))
        message = "Attendance recorded"
    return {"success": True, "data": saved.model_dump(mode="json"), "message": message}
