from fastapi import APIRouter, Depends, HTTPException

from database.db import DataStoreClient, get_store
from dependencies.security import get_current_user, require_admin
from schemas.assignments import AssignmentCreate, UserContext
from schemas.common import YearLevel
from services.scope_filter import filter_subjects_by_assignments

router = APIRouter(prefix="/assignments", tags=["assignments"])


def _all_subjects(store: DataStoreClient, year_level: YearLevel) -> list:
    rows = store.select("subjects", {"grade_level": year_level, "is_active": "true"}, order="name.asc")
    return [r["name"] for r in rows]


# ✅ [READ] the caller's role and assignments
@router.get("/me")
def read_my_assignments(user: UserContext = Depends(get_current_user)):
    return {
        "success": True,
        "data": {
            "user_id": user.user_id,
            "role": user.role,
            "assignments": [a.model_dump(mode="json") for a in user.assignments],
        },
    }


# ✅ [READ] subjects the caller may grade for a year level (admins: all of them)
@router.get("/subjects")
def read_my_subjects(
    year_level: YearLevel,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    subjects = _all_subjects(store, year_level)
    if not user.is_admin:
        subjects = filter_subjects_by_assignments(subjects, year_level, user.assignments)
    return {"success": True, "data": {"year_level": year_level, "subjects": sorted(subjects)}}


# ==========================================================
# Admin management
# ==========================================================

# ✅ [CREATE] one assignment per advisor / year level / section / strand
@router.post("/", status_code=201)
def create_assignment(
    assignment: AssignmentCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(require_admin),
):
    existing = store.select("advisor_assignments", {
        "advisor_id": assignment.advisor_id,
        "year_level": assignment.year_level,
        "section": assignment.section,
    })
    if any(r.get("strand") == (assignment.strand.value if assignment.strand else None) for r in existing):
        raise HTTPException(status_code=409, detail="Advisor already has this assignment")

    row = store.insert("advisor_assignments", assignment.model_dump(mode="json", exclude_none=True))
    return {"success": True, "data": AssignmentCreate(**row).model_dump(mode="json"), "message": "Assignment created"}


# ✅ [DELETE]
@router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: str,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(require_admin),
):
    if not store.select("advisor_assignments", {"id": assignment_id}):
        raise HTTPException(status_code=404, detail="Assignment not found")
    store.delete("advisor_assignments", {"id": assignment_id})
    return {"success": True, "data": {"assignment_id": assignment_id}, "message": "Assignment deleted"}
