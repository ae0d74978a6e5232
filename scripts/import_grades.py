import csv
import logging
import sys

from database.db import DataStoreClient, store
from schemas.grades import GradeCreate
from services.grade_calculator import grade_with_remark
from services.records import active_weights

logger = logging.getLogger(__name__)

CSV_PATH = "data/grades.csv"  # ✅ student_id,subject,quarter,written_work,performance_task,quarterly_assessment


def _score(value: str):
    value = (value or "").strip()
    return float(value) if value else None


def read_rows(path: str):
    """(line number, raw CSV row) pairs; the header is line 1."""
    with open(path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for line_no, row in enumerate(reader, start=2):
            yield line_no, row


def parse_row(row: dict) -> GradeCreate:
    return GradeCreate(
        student_id=(row.get("student_id") or "").strip(),
        subject=(row.get("subject") or "").strip(),
        quarter=(row.get("quarter") or "").strip(),
        written_work=_score(row.get("written_work")),
        performance_task=_score(row.get("performance_task")),
        quarterly_assessment=_score(row.get("quarterly_assessment")),
    )


def validate_rows(rows, client: DataStoreClient):
    """
    Check every row before anything is written.
    - returns (valid grades, [(line number, error message), ...])
    - rejects: unparsable rows, unknown students, repeats inside the file,
      grades that already exist for (student, subject, quarter)
    """
    known_students = {s["id"] for s in client.select("students")}
    seen = set()
    valid, rejects = [], []
    for line_no, row in rows:
        try:
            grade = parse_row(row)
        except ValueError as e:
            rejects.append((line_no, f"invalid row: {e}"))
            continue

        key = (grade.student_id, grade.subject, grade.quarter)
        if grade.student_id not in known_students:
            rejects.append((line_no, f"unknown student {grade.student_id}"))
        elif key in seen:
            rejects.append((line_no, f"duplicate of an earlier row for {grade.subject} {grade.quarter.value}"))
        elif client.select("grades", {"student_id": grade.student_id, "subject": grade.subject, "quarter": grade.quarter}):
            rejects.append((line_no, f"grade already exists for {grade.subject} {grade.quarter.value}"))
        else:
            seen.add(key)
            valid.append(grade)
    return valid, rejects


def import_grades(path: str = CSV_PATH, client: DataStoreClient = store):
    """
    Validate the whole CSV, then insert the rows that passed with their derived
    final grade and remarks.
    - returns (rows written, rejected rows as (line number, error))
    """
    valid, rejects = validate_rows(read_rows(path), client)
    for line_no, error in rejects:
        logger.warning("⚠️ %s line %d skipped: %s", path, line_no, error)

    weights = active_weights(client)
    for grade in valid:
        final, remark = grade_with_remark(grade.scores(), weights)
        client.insert("grades", {**grade.model_dump(mode="json"), "final_grade": final, "remarks": remark.value})
    return len(valid), rejects


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    written, rejected = import_grades(sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
    logger.info("✅ grades CSV -> data store import done (%d rows, %d rejected)", written, len(rejected))
