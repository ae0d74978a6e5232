from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import date

from schemas.common import AttendanceStatus


# ✅ Register / update (POST, upsert on student + date)
class AttendanceCreate(BaseModel):
    student_id: str                          # student id
    date: date                               # school day
    status: AttendanceStatus                 # present / absent / late / excused
    remarks: Optional[str] = None            # reason, note


# ✅ Output
class AttendanceRecord(AttendanceCreate):
    id: str

    model_config = ConfigDict(extra="ignore")


class AttendanceSummary(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    total: int = 0
    attendance_rate: float = 0.0             # present / total * 100
