from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database.db import DataStoreClient, get_store
from dependencies.security import get_current_user, require_admin
from schemas.assignments import UserContext
from schemas.common import Strand, YearLevel
from schemas.students import Student, StudentCreate, StudentFilter
from services.analytics import attendance_summary, performance_trend
from services.records import get_student, load_attendance, load_grades, load_students
from services.scope_filter import can_edit, scope_records

router = APIRouter(prefix="/students", tags=["students"])


def _visible_student(store: DataStoreClient, user: UserContext, student_id: str) -> Student:
    student = get_student(store, student_id)
    if student is None or not scope_records(user, [student]):
        raise HTTPException(status_code=404, detail="Student not found")
    return student


# ==========================================================
# [1] List / search
# ==========================================================

# ✅ [READ] students visible to the caller, optionally filtered
@router.get("/")
def read_students(
    year_level: Optional[YearLevel] = None,
    section: Optional[str] = None,
    strand: Optional[Strand] = None,
    search: Optional[str] = None,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    wanted = StudentFilter(year_level=year_level, section=section, strand=strand, search=search)
    students = [s for s in scope_records(user, load_students(store)) if wanted.matches(s)]
    return {
        "success": True,
        "data": [s.model_dump(mode="json") for s in students],
        "message": f"{len(students)} students",
    }


# ✅ [CREATE] admins anywhere, advisors only inside their assignments
@router.post("/", status_code=201)
def create_student(
    student: StudentCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    if not can_edit(user, student):
        raise HTTPException(status_code=403, detail="Section is outside your assignments")
    if store.select("students", {"student_lrn": student.student_lrn}):
        raise HTTPException(status_code=409, detail="A student with this LRN already exists")

    row = store.insert("students", student.model_dump(mode="json"))
    return {"success": True, "data": Student(**row).model_dump(mode="json"), "message": "Student created successfully"}


# ==========================================================
# [2] Single student
# ==========================================================

# ✅ [SUMMARY] quarter averages, risk level and attendance of one student
@router.get("/{student_id}/summary")
def read_student_summary(
    student_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    student = _visible_student(store, user, student_id)
    grades = load_grades(store, students={student.id: student}, student_id=student.id)
    attendance = load_attendance(store, student_id=student.id)
    return {
        "success": True,
        "data": {
            "student": student.model_dump(mode="json"),
            "performance": performance_trend(grades),
            "attendance": attendance_summary(attendance).model_dump(),
        },
    }


# ✅ [READ]
@router.get("/{student_id}")
def read_student(
    student_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    student = _visible_student(store, user, student_id)
    return {"success": True, "data": student.model_dump(mode="json")}


# ✅ [UPDATE] the target section must also be inside the caller's assignments
@router.put("/{student_id}")
def update_student(
    student_id: str,
    updated: StudentCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    student = _visible_student(store, user, student_id)
    if not (can_edit(user, student) and can_edit(user, updated)):
        raise HTTPException(status_code=403, detail="Section is outside your assignments")

    values = updated.model_dump(mode="json")
    store.update("students", {"id": student_id}, values)
    return {
        "success": True,
        "data": Student(id=student.id, **values).model_dump(mode="json"),
        "message": "Student updated successfully",
    }


# ✅ [DELETE] admin only
@router.delete("/{student_id}")
def delete_student(
    student_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(require_admin),
):
    if get_student(store, student_id) is None:
        raise HTTPException(status_code=404, detail="Student not found")
    store.delete("students", {"id": student_id})
    return {"success": True, "data": {"student_id": student_id}, "message": "Student deleted successfully"}
