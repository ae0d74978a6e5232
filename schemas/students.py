from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import date

from schemas.assignments import ScopedRecord
from schemas.common import Strand, YearLevel


# ✅ Input (POST/PUT)
class StudentCreate(ScopedRecord):
    first_name: str                          # given name
    middle_name: Optional[str] = None
    last_name: str                           # family name
    student_id_no: str                       # school-issued id number
    student_lrn: str                         # learner reference number
    birth_date: Optional[date] = None
    gender: Optional[str] = None             # male / female
    address: Optional[str] = None
    contact_number: Optional[str] = None
    guardian_name: Optional[str] = None
    parent_contact_no: Optional[str] = None


# ✅ Output (GET, detail)
class Student(StudentCreate):
    id: str                                  # student id (store generated)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ✅ Query filters for listing
class StudentFilter(BaseModel):
    year_level: Optional[YearLevel] = None
    section: Optional[str] = None
    strand: Optional[Strand] = None
    search: Optional[str] = None             # matches names, id no, LRN

    model_config = ConfigDict(extra="ignore")

    def matches(self, student: Student) -> bool:
        if self.year_level is not None and student.year_level != self.year_level:
            return False
        if self.section is not None and student.section != self.section:
            return False
        if self.strand is not None and student.strand != self.strand:
            return False
        if self.search:
            term = self.search.lower()
            haystack = (student.first_name, student.last_name, student.student_id_no, student.student_lrn)
            return any(term in value.lower() for value in haystack)
        return True
