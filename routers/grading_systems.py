import logging

from fastapi import APIRouter, Depends, HTTPException

from database.db import DataStoreClient, get_store
from dependencies.security import get_current_user, require_admin
from schemas.assignments import UserContext
from schemas.grading_systems import GradingSystem, GradingSystemCreate
from services.grade_calculator import configured_default_weights
from services.records import active_grading_system

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/grading-systems", tags=["grading systems"])


def _default_system() -> dict:
    weights = configured_default_weights()
    return {
        "id": "default",
        "name": "DepEd K-12 Default",
        "description": "Default grading system (fallback)",
        "written_work_percentage": weights.written_work * 100,
        "performance_task_percentage": weights.performance_task * 100,
        "quarterly_assessment_percentage": weights.quarterly_assessment * 100,
        "is_active": True,
    }


# ✅ [READ] active system, or the built-in default
@router.get("/active")
def read_active_grading_system(
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(get_current_user),
):
    system = active_grading_system(store)
    data = system.model_dump() if system else _default_system()
    return {"success": True, "data": data}


# ✅ [READ] all systems (admin)
@router.get("/")
def read_grading_systems(
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(require_admin),
):
    rows = store.select("grading_systems", order="name.asc")
    return {"success": True, "data": [GradingSystem(**r).model_dump() for r in rows]}


# ✅ [CREATE] activating a new system deactivates the previous one
@router.post("/", status_code=201)
def create_grading_system(
    system: GradingSystemCreate,
    store: DataStoreClient = Depends(get_store),
    user: UserContext = Depends(require_admin),
):
    if store.select("grading_systems", {"name": system.name}):
        raise HTTPException(status_code=409, detail="A grading system with this name already exists")
    if system.is_active:
        store.update("grading_systems", {"is_active": "true"}, {"is_active": False})
        logger.info("user %s activated grading system %s", user.user_id, system.name)

    row = store.insert("grading_systems", {**system.model_dump(), "created_by": user.user_id})
    return {"success": True, "data": GradingSystem(**row).model_dump(), "message": "Grading system created"}
