from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional

from schemas.common import Role, Strand, YearLevel


# ✅ Anything living in a year level / section (students, grades)
class ScopedRecord(BaseModel):
    year_level: YearLevel                    # grade level "7".."12"
    section: str                             # section name (e.g. Archimedes)
    strand: Optional[Strand] = None          # senior high only

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _junior_high_has_no_strand(self):
        if self.strand is not None and self.year_level.is_junior_high:
            raise ValueError(f"year level {self.year_level.value} does not take a strand")
        return self


# ✅ One scope an advisor is allowed to act within
class Assignment(BaseModel):
    id: Optional[str] = None                 # assignment id (store generated)
    year_level: YearLevel
    section: str
    strand: Optional[Strand] = None          # None = every strand of the section
    subjects: Optional[List[str]] = None     # None/[] = no subjects granted

    model_config = ConfigDict(extra="ignore")


# ✅ Authenticated caller, passed explicitly into handlers
class UserContext(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Role = Role.ADVISOR
    assignments: List[Assignment] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# ✅ Admin input: attach a scope to an advisor
class AssignmentCreate(Assignment):
    advisor_id: str
