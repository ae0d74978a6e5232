import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database.db import DataStoreClient, DataStoreError, get_store
from dependencies.security import get_current_user
from schemas.assignments import UserContext
from schemas.common import Quarter
from schemas.grades import (
    Grade, GradeComputeRequest, GradeComputeResult, GradeCreate, GradeHistoryEntry, GradeUpdate, HistoryAction,
)
from schemas.students import Student
from services.grade_calculator import grade_with_remark
from services.records import active_weights, get_grade, get_student, load_grades
from services.scope_filter import can_edit, filter_subjects_by_assignments, record_matches, scope_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/grades", tags=["grades"])

SCORE_FIELDS = ("written_work", "performance_task", "quarterly_assessment")
AUDITED_FIELDS = (*SCORE_FIELDS, "final_grade", "remarks")
SCOPE_FIELDS = {"year_level", "section", "strand"}


def _grade_data(grade: Grade) -> dict:
    return grade.model_dump(mode="json")


def _audited(grade: Grade) -> dict:
    return {k: getattr(grade, k) for k in AUDITED_FIELDS}


def _record_history(store: DataStoreClient, user: UserContext, grade_id: str, action: HistoryAction,
                    old_values: dict, new_values: dict, undo):
    """Write one audit row; if that fails, `undo` reverts the grade change before the error propagates."""
    entry = GradeHistoryEntry(grade_id=grade_id, changed_by=user.user_id, action_type=action,
                              old_values=old_values, new_values=new_values)
    try:
        store.insert("grade_history", entry.model_dump(mode="json", exclude={"id", "changed_at"}))
    except DataStoreError:
        logger.error("grade %s: history write failed, reverting %s", grade_id, action.value)
        undo()
        raise


def _ensure_can_grade(user: UserContext, student: Student, subject: str):
    """Advisors may only grade their own sections, in subjects granted for that year level."""
    if not can_edit(user, student):
        logger.info("user %s denied grading student %s", user.user_id, student.id)
        raise HTTPException(status_code=403, detail="Student is outside your assignments")
    if user.is_admin:
        return
    covering = [a for a in user.assignments if record_matches(student, a)]
    if not filter_subjects_by_assignments([subject], student.year_level, covering):
        raise HTTPException(status_code=403, detail=f"Subject '{subject}' is not assigned to you")


# ==========================================================
# [1] Calculator
# ==========================================================

# ✅ [COMPUTE] final grade + remarks without saving anything
@router.post("/compute")
def compute_grade(
    req: GradeComputeRequest,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    weights = req.weights or active_weights(store)
    final, remark = grade_with_remark(req.scores(), weights)
    return {
        "success": True,
        "data": GradeComputeResult(final_grade=final, remarks=remark, weights=weights).model_dump(mode="json"),
    }


# ==========================================================
# [2] CRUD
# ==========================================================

# ✅ [READ] grades visible to the caller
@router.get("/")
def read_grades(
    quarter: Optional[Quarter] = None,
    subject: Optional[str] = None,
    student_id: Optional[str] = None,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    grades = load_grades(store, quarter=quarter, subject=subject, student_id=student_id)
    visible = scope_records(user, grades)
    return {
        "success": True,
        "data": [_grade_data(g) for g in visible],
        "message": f"{len(visible)} grades",
    }


# ✅ [CREATE] final grade and remarks are always derived from the components
@router.post("/", status_code=201)
def create_grade(
    grade: GradeCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    student = get_student(store, grade.student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    _ensure_can_grade(user, student, grade.subject)

    existing = store.select("grades", {
        "student_id": grade.student_id, "subject": grade.subject, "quarter": grade.quarter,
    })
    if existing:
        raise HTTPException(status_code=409, detail="Grade already exists for this subject and quarter")

    final, remark = grade_with_remark(grade.scores(), active_weights(store))
    row = store.insert("grades", {
        **grade.model_dump(mode="json"),
        "final_grade": final,
        "remarks": remark.value,
    })
    created = Grade(**{**row, "year_level": student.year_level, "section": student.section,
                       "strand": student.strand})
    _record_history(store, user, created.id, HistoryAction.INSERT, {}, _audited(created),
                    undo=lambda: store.delete("grades", {"id": created.id}))
    return {"success": True, "data": _grade_data(created), "message": "Grade created successfully"}


# ✅ [READ] single grade
@router.get("/{grade_id}")
def read_grade(
    grade_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    grade = get_grade(store, grade_id)
    if grade is None or not scope_records(user, [grade]):
        raise HTTPException(status_code=404, detail="Grade not found")
    return {"success": True, "data": _grade_data(grade)}


# ✅ [UPDATE] recompute and keep an audit trail
@router.put("/{grade_id}")
def update_grade(
    grade_id: str,
    updated: GradeUpdate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    grade = get_grade(store, grade_id)
    if grade is None or not scope_records(user, [grade]):
        raise HTTPException(status_code=404, detail="Grade not found")
    student = get_student(store, grade.student_id)
    _ensure_can_grade(user, student, grade.subject)

    final, remark = grade_with_remark(updated.scores(), active_weights(store))
    values = {**updated.model_dump(mode="json"), "final_grade": final, "remarks": remark.value}
    old_values = _audited(grade)

    store.update("grades", {"id": grade_id}, values)
    _record_history(store, user, grade_id, HistoryAction.UPDATE, old_values, values,
                    undo=lambda: store.update("grades", {"id": grade_id}, old_values))

    saved = grade.model_copy(update=values)
    return {"success": True, "data": _grade_data(saved), "message": "Grade updated successfully"}


# ✅ [DELETE] the audit row keeps the last values
@router.delete("/{grade_id}")
def delete_grade(
    grade_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    grade = get_grade(store, grade_id)
    if grade is None or not scope_records(user, [grade]):
        raise HTTPException(status_code=404, detail="Grade not found")

    store.delete("grades", {"id": grade_id})
    _record_history(store, user, grade_id, HistoryAction.DELETE, _audited(grade), {},
                    undo=lambda: store.insert("grades", grade.model_dump(mode="json", exclude=SCOPE_FIELDS)))
    return {"success": True, "data": {"grade_id": grade_id}, "message": "Grade deleted successfully"}


# ✅ [HISTORY] audit trail of a grade, oldest first
@router.get("/{grade_id}/history")
def read_grade_history(
    grade_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    grade = get_grade(store, grade_id)
    if grade is None or not scope_records(user, [grade]):
        raise HTTPException(status_code=404, detail="Grade not found")
    rows = store.select("grade_history", {"grade_id": grade_id}, order="changed_at.asc")
    return {
        "success": True,
        "data": [GradeHistoryEntry(**r).model_dump(mode="json") for r in rows],
    }
