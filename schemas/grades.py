from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from schemas.assignments import ScopedRecord
from schemas.common import Quarter


class RemarkBand(str, Enum):
    """Qualitative descriptor stored alongside every final grade"""
    OUTSTANDING = "Outstanding"
    VERY_SATISFACTORY = "Very Satisfactory"
    SATISFACTORY = "Satisfactory"
    FAIRLY_SATISFACTORY = "Fairly Satisfactory"
    DID_NOT_MEET_EXPECTATIONS = "Did Not Meet Expectations"


# ✅ Raw component scores (None = not yet entered)
class ComponentScores(BaseModel):
    written_work: Optional[float] = None
    performance_task: Optional[float] = None
    quarterly_assessment: Optional[float] = None

    model_config = ConfigDict(frozen=True)


# ✅ Component weights as fractions (0.25 = 25%)
class GradeWeights(BaseModel):
    written_work: float = 0.25
    performance_task: float = 0.50
    quarterly_assessment: float = 0.25

    model_config = ConfigDict(frozen=True)


# ✅ Bounded score field used by input schemas
Score = Optional[float]
_score = dict(default=None, ge=0, le=100)


# ✅ Calculator request/response
class GradeComputeRequest(BaseModel):
    written_work: Score = Field(**_score)
    performance_task: Score = Field(**_score)
    quarterly_assessment: Score = Field(**_score)
    weights: Optional[GradeWeights] = None   # None = active grading system

    def scores(self) -> ComponentScores:
        return ComponentScores(
            written_work=self.written_work,
            performance_task=self.performance_task,
            quarterly_assessment=self.quarterly_assessment,
        )

class GradeComputeResult(BaseModel):
    final_grade: float
    remarks: RemarkBand
    weights: GradeWeights


# ✅ Input (POST)
class GradeCreate(BaseModel):
    student_id: str                          # student id
    subject: str                             # subject name
    quarter: Quarter                         # grading period
    written_work: Score = Field(**_score)
    performance_task: Score = Field(**_score)
    quarterly_assessment: Score = Field(**_score)

    def scores(self) -> ComponentScores:
        return ComponentScores(
            written_work=self.written_work,
            performance_task=self.performance_task,
            quarterly_assessment=self.quarterly_assessment,
        )


# ✅ Input (PUT) - student/subject/quarter are fixed once created
class GradeUpdate(BaseModel):
    written_work: Score = Field(**_score)
    performance_task: Score = Field(**_score)
    quarterly_assessment: Score = Field(**_score)

    def scores(self) -> ComponentScores:
        return ComponentScores(
            written_work=self.written_work,
            performance_task=self.performance_task,
            quarterly_assessment=self.quarterly_assessment,
        )


# ✅ Output - carries the student's year level/section/strand so it can be scoped
class Grade(ScopedRecord):
    id: str
    student_id: str
    subject: str
    quarter: Quarter
    written_work: Optional[float] = None
    performance_task: Optional[float] = None
    quarterly_assessment: Optional[float] = None
    final_grade: Optional[float] = None
    remarks: Optional[str] = None


class HistoryAction(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ✅ Audit trail row written on every grade create / update / delete
class GradeHistoryEntry(BaseModel):
    id: Optional[str] = None
    grade_id: str
    changed_by: str
    action_type: HistoryAction = HistoryAction.UPDATE
    old_values: dict = Field(default_factory=dict)   # empty on INSERT
    new_values: dict = Field(default_factory=dict)   # empty on DELETE
    changed_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")
