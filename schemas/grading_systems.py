from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Annotated, Optional

Percentage = Annotated[float, Field(ge=0, le=100)]


# ✅ Admin-configurable component weights, stored as percentages
class GradingSystemCreate(BaseModel):
    name: str
    description: Optional[str] = None
    written_work_percentage: Percentage
    performance_task_percentage: Percentage
    quarterly_assessment_percentage: Percentage
    is_active: bool = False

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _sum_to_100(self):
        total = (
            self.written_work_percentage
            + self.performance_task_percentage
            + self.quarterly_assessment_percentage
        )
        if round(total, 2) != 100:
            raise ValueError(f"percentages must add up to 100 (got {total:g})")
        return self


class GradingSystem(GradingSystemCreate):
    id: str
