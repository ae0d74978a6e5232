"""
services/analytics.py

- Dashboard aggregations: attendance summary, per-student performance trend,
  at-risk scoring, section summaries, remark distribution.
- Inputs are already-scoped lists of schemas (Grade, Student, AttendanceRecord).
"""

from collections import Counter, defaultdict
from datetime import date
from typing import Dict, List, Optional

from schemas.attendance import AttendanceSummary
from schemas.common import AttendanceStatus, Quarter
from schemas.grades import RemarkBand
from services.grade_calculator import (
    average, is_passing, overall_average, quarter_averages, remark_for, round_half_up,
)

# ✅ q2 - q1 beyond this many points counts as a trend
TREND_DELTA = 5.0

HIGH_RISK = "High Risk"
MEDIUM_RISK = "Medium Risk"
LOW_RISK = "Low Risk"
ON_TRACK = "On Track"


# ==========================================================
# Attendance
# ==========================================================

def attendance_summary(records) -> AttendanceSummary:
    counts = Counter(AttendanceStatus(r.status) for r in records)
    total = sum(counts.values())
    present = counts.get(AttendanceStatus.PRESENT, 0)
    rate = round_half_up(present / total * 100, 2) if total else 0.0
    return AttendanceSummary(
        present=present,
        absent=counts.get(AttendanceStatus.ABSENT, 0),
        late=counts.get(AttendanceStatus.LATE, 0),
        excused=counts.get(AttendanceStatus.EXCUSED, 0),
        total=total,
        attendance_rate=rate,
    )


# ==========================================================
# Per-student performance
# ==========================================================

def trend_between(earlier: Optional[float], later: Optional[float]) -> str:
    if earlier is None or later is None:
        return "Stable"
    delta = later - earlier
    if delta < -TREND_DELTA:
        return "Declining"
    if delta > TREND_DELTA:
        return "Improving"
    return "Stable"


def risk_level(overall: Optional[float], failing: int) -> str:
    if overall is None:
        return ON_TRACK
    if overall < 75:
        return HIGH_RISK
    if overall < 80 and failing >= 2:
        return MEDIUM_RISK
    if overall < 80 and failing >= 1:
        return LOW_RISK
    return ON_TRACK


def performance_trend(grades) -> dict:
    """Quarter averages, failing count, q1->q2 trend and risk level for one student."""
    q_avgs = quarter_averages(grades)
    overall = overall_average(grades)
    completed = [g for g in grades if g.final_grade is not None]
    failing = sum(1 for g in completed if not is_passing(g.final_grade))
    return {
        "q1_average": q_avgs[Quarter.Q1],
        "q2_average": q_avgs[Quarter.Q2],
        "q3_average": q_avgs[Quarter.Q3],
        "q4_average": q_avgs[Quarter.Q4],
        "overall_average": round_half_up(overall, 2) if overall is not None else None,
        "total_grades": len(grades),
        "completed_grades": len(completed),
        "failing_grades": failing,
        "q1_to_q2_trend": trend_between(q_avgs[Quarter.Q1], q_avgs[Quarter.Q2]),
        "risk_level": risk_level(overall, failing),
    }


def risk_score(trend: dict, attendance: Optional[AttendanceSummary] = None) -> int:
    """0-100, higher = more at risk. Academic 40, failing subjects 30, attendance 20, trend 10."""
    score = 0
    overall = trend["overall_average"]
    if overall is not None:
        if overall < 75:
            score += 40
        elif overall < 80:
            score += 25
        elif overall < 85:
            score += 10

    failing = trend["failing_grades"]
    if failing >= 3:
        score += 30
    elif failing >= 2:
        score += 20
    elif failing >= 1:
        score += 10

    if attendance is not None and attendance.total > 0:
        ratio = attendance.present / attendance.total
        if ratio < 0.75:
            score += 20
        elif ratio < 0.85:
            score += 10

    if trend["q1_to_q2_trend"] == "Declining":
        score += 10
    return max(0, min(100, score))


def _attendance_ratio(attendance: Optional[AttendanceSummary]) -> Optional[float]:
    if attendance is None or attendance.total == 0:
        return None
    return attendance.present / attendance.total


def primary_concern(trend: dict, attendance: Optional[AttendanceSummary] = None) -> tuple:
    """(concern, recommended action) - first rule that applies wins."""
    overall = trend["overall_average"]
    failing = trend["failing_grades"]
    ratio = _attendance_ratio(attendance)

    if overall is not None and overall < 75 and failing >= 2:
        return "Academic Performance", "Immediate intervention required"
    if ratio is not None and ratio < 0.75:
        return "Attendance Issues", "Attendance counseling needed"
    if trend["q1_to_q2_trend"] == "Declining":
        return "Performance Decline", "Monitor closely and provide support"
    if failing >= 1:
        return "Subject-Specific Struggles", "Subject-specific tutoring"
    return "General Monitoring", "Continue regular monitoring"


def is_at_risk(trend: dict, attendance: Optional[AttendanceSummary] = None) -> bool:
    overall = trend["overall_average"]
    failing = trend["failing_grades"]
    ratio = _attendance_ratio(attendance)
    return any((
        overall is not None and overall < 75,
        failing >= 2,
        ratio is not None and ratio < 0.80,
        trend["q1_to_q2_trend"] == "Declining",
        overall is not None and overall < 80 and failing > 0,
    ))


def recent_attendance(records, since: Optional[date] = None) -> list:
    """Attendance on or after `since`; everything when `since` is None."""
    if since is None:
        return list(records)
    return [r for r in records if r.date >= since]


def at_risk_students(students, grades, attendance, since: Optional[date] = None) -> List[dict]:
    """At-risk rows for the given students, highest risk score first.

    Only attendance on or after `since` counts toward the attendance factor.
    """
    grades_by_student = defaultdict(list)
    for g in grades:
        grades_by_student[g.student_id].append(g)
    attendance_by_student = defaultdict(list)
    for a in recent_attendance(attendance, since):
        attendance_by_student[a.student_id].append(a)

    rows = []
    for s in students:
        trend = performance_trend(grades_by_student[s.id])
        att = attendance_summary(attendance_by_student[s.id])
        if not is_at_risk(trend, att):
            continue
        concern, action = primary_concern(trend, att)
        rows.append({
            "student_id": s.id,
            "student_name": s.full_name,
            "year_level": s.year_level,
            "section": s.section,
            "strand": s.strand,
            **trend,
            "attendance_rate": att.attendance_rate,
            "risk_score": risk_score(trend, att),
            "primary_concern": concern,
            "recommended_action": action,
        })
    rows.sort(key=lambda r: r["risk_score"], reverse=True)
    return rows


# ==========================================================
# Section / school-wide
# ==========================================================

def grade_distribution(grades) -> Dict[str, int]:
    distribution = {band.value: 0 for band in RemarkBand}
    for g in grades:
        if g.final_grade is not None:
            distribution[remark_for(g.final_grade).value] += 1
    return distribution


def section_summary(students, grades) -> List[dict]:
    """One row per (year level, section, strand), ordered by year level, section, strand."""
    groups = defaultdict(list)
    for s in students:
        groups[(s.year_level, s.section, s.strand)].append(s)
    section_of = {s.id: (s.year_level, s.section, s.strand) for s in students}
    grades_by_group = defaultdict(list)
    for g in grades:
        group = section_of.get(g.student_id)
        if group is not None:
            grades_by_group[group].append(g)

    rows = []
    for (year_level, section, strand), members in groups.items():
        section_grades = [g for g in grades_by_group[(year_level, section, strand)] if g.final_grade is not None]
        avg = average(g.final_grade for g in section_grades)
        passing = sum(1 for g in section_grades if is_passing(g.final_grade))
        rows.append({
            "year_level": year_level,
            "section": section,
            "strand": strand,
            "student_count": len(members),
            "average_grade": round_half_up(avg, 2) if avg is not None else None,
            "passing_rate": round_half_up(passing / len(section_grades) * 100, 2) if section_grades else 0.0,
            "distribution": grade_distribution(section_grades),
        })
    rows.sort(key=lambda r: (int(r["year_level"].value), r["section"], r["strand"].value if r["strand"] else ""))
    return rows
