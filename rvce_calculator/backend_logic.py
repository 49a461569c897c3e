import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Iterable, List, Tuple

import numpy as np

from rvce_calculator.config import CONFIG
from rvce_calculator.curriculum import (
    GRADE_LETTERS,
    MAX_SEE,
    MODE_FINAL_GRADE,
    PASS_CIE,
    PASS_SEE,
    Subject,
)

# ------------------------
# Number helpers
# ------------------------
def to_number(value) -> float:
    """
    Raw form values arrive as strings ("", "12", "7.5") or numbers.
    Anything missing or non-numeric counts as 0.
    """
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _dec(value) -> Decimal:
    return Decimal(str(to_number(value)))


def round_2dp_half_up(x) -> Decimal:
    return Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_gpa(value) -> str:
    if value is None:
        return "0.00"
    try:
        return str(round_2dp_half_up(value))
    except InvalidOperation:
        return "0.00"


# ------------------------
# CIE & final grade
# ------------------------
def calculate_cie(subject_type: str, marks: Dict) -> int:
    """
    CIE total out of 100, rounded up.

    math:    (q1+q2) + (t1+t2)/100*40 + matlab + el
    lab:     (q1+q2)/2 + (t1+t2)/100*30 + lab + el
    regular: (q1+q2) + (t1+t2)/100*40 + el
    """
    q1, q2 = _dec(marks.get("q1")), _dec(marks.get("q2"))
    t1, t2 = _dec(marks.get("t1")), _dec(marks.get("t2"))
    el = _dec(marks.get("el"))

    if subject_type == "math":
        cie = (q1 + q2) + (t1 + t2) / 100 * 40 + _dec(marks.get("matlab")) + el
    elif subject_type == "lab":
        cie = (q1 + q2) / 2 + (t1 + t2) / 100 * 30 + _dec(marks.get("lab")) + el
    else:
        cie = (q1 + q2) + (t1 + t2) / 100 * 40 + el

    return math.ceil(cie)


def calculate_final_grade(cie_total, see=0) -> int:
    # Either component below its pass mark is an F whatever the average
    if to_number(cie_total) < PASS_CIE or to_number(see) < PASS_SEE:
        return 0

    total = (_dec(cie_total) + _dec(see)) / 2
    return min(10, max(0, math.floor(total / 10) + 1))


def combined_total(cie_total, see=0) -> float:
    return float((_dec(cie_total) + _dec(see)) / 2)


def grade_letter(grade_point) -> str:
    try:
        return GRADE_LETTERS.get(grade_point, "F")
    except TypeError:
        return "F"


def calculate_subject(subject: Subject, entry: Dict, mode: str) -> Dict:
    """
    Compute the result card for one subject from its raw form entry.
    In final-grade mode the SEE mark is folded in as well.
    """
    cie_total = calculate_cie(subject.type, entry or {})

    if mode != MODE_FINAL_GRADE:
        return {"cie_total": cie_total, "type": "cie"}

    see = to_number((entry or {}).get("see"))
    grade_point = calculate_final_grade(cie_total, see)
    return {
        "cie_total": cie_total,
        "grade_point": grade_point,
        "letter": grade_letter(grade_point),
        "see": see,
        "total": combined_total(cie_total, see),
        "type": "final",
    }


# ------------------------
# SEE requirements
# ------------------------
TARGET_GRADES = (10, 9, 8, 7, 6, 5, 4)


def required_see(target_grade: int, cie_total):
    # (target - 1) * 10 = (CIE + SEE) / 2
    return (target_grade - 1) * 20 - cie_total


def see_requirements(cie_total) -> List[Dict]:
    """
    SEE marks needed for each passing grade, smallest requirement first.
    Only requirements in [35, 100] are listed: below 35 the SEE itself
    fails, above 100 the grade is out of reach.
    """
    rows = []
    for grade in TARGET_GRADES:
        needed = required_see(grade, cie_total)
        if PASS_SEE <= needed <= MAX_SEE:
            rows.append({
                "grade": grade,
                "letter": grade_letter(grade),
                "see_required": needed,
            })
    rows.sort(key=lambda row: row["see_required"])
    return rows


def grade_at_minimum_see(cie_total) -> int:
    return min(10, max(0, math.floor((cie_total + PASS_SEE) / 20) + 1))


def see_requirement_summary(cie_total) -> Dict:
    rows = see_requirements(cie_total)
    grade_at_pass = grade_at_minimum_see(cie_total)
    return {
        "cie_total": cie_total,
        "cie_eligible": cie_total >= PASS_CIE,
        "requirements": rows,
        "minimum_target": rows[0] if rows else None,
        "highest_target": rows[-1] if rows else None,
        "grade_at_pass_see": grade_at_pass,
        "letter_at_pass_see": grade_letter(grade_at_pass),
    }


# ------------------------
# SGPA / CGPA
# ------------------------
@dataclass
class CycleSelection:
    """
    What was picked for one cycle in the GPA view: either an SGPA typed in
    directly (override) or a grade point per subject.
    """
    subjects: List[Subject]
    grades: Dict[str, int] = field(default_factory=dict)
    override: float | str | None = None

    def has_override(self) -> bool:
        if self.override is None or self.override == "":
            return False
        # "." passes the input pattern but is not a number
        try:
            float(self.override)
        except (TypeError, ValueError):
            return False
        return True


def _empty_gc() -> np.ndarray:
    return np.empty((0, 2), dtype=object)


def grade_credit_matrix(subjects: Iterable[Subject], grades: Dict) -> np.ndarray:
    """
    Nx2 [grade, credit] array of the subjects that have a grade assigned.
    A grade of 0 (F) is assigned; None or "" is not.
    """
    rows = []
    for subject in subjects:
        grade = grades.get(subject.id)
        if grade is None or grade == "":
            continue
        rows.append([_dec(grade), Decimal(subject.credits)])

    if not rows:
        return _empty_gc()
    return np.array(rows, dtype=object)


def weighted_mean(gc: np.ndarray) -> Tuple[Decimal | None, Decimal]:
    """
    gc: Nx2 numpy array -> [grade, credit]
    returns: (credit-weighted mean grade, total credits)
    """
    if gc.size == 0:
        return None, Decimal(0)

    grades = gc[:, 0]
    credits = gc[:, 1]
    total_credits = Decimal(credits.sum())
    if total_credits == 0:
        return None, Decimal(0)

    mean = Decimal(np.dot(grades, credits)) / total_credits
    return mean, total_credits


def cycle_contribution(selection: CycleSelection,
                       override_credits: int | None = None) -> np.ndarray:
    if override_credits is None:
        override_credits = CONFIG.CYCLE_OVERRIDE_CREDITS

    if selection.has_override():
        return np.array([[_dec(selection.override), Decimal(override_credits)]],
                        dtype=object)
    return grade_credit_matrix(selection.subjects, selection.grades)


def calculate_cycle_sgpa(subjects: Iterable[Subject],
                         grades: Dict,
                         override=None,
                         override_credits: int | None = None) -> str:
    selection = CycleSelection(list(subjects), grades or {}, override)
    mean, _ = weighted_mean(cycle_contribution(selection, override_credits))
    return format_gpa(mean)


def calculate_cgpa(selections: Iterable[CycleSelection],
                   override_credits: int | None = None) -> str:
    parts = [cycle_contribution(s, override_credits) for s in selections]
    parts = [p for p in parts if p.size > 0]
    if not parts:
        return "0.00"

    mean, _ = weighted_mean(np.vstack(parts))
    return format_gpa(mean)


def sgpa_from_results(subjects: Iterable[Subject], results: Dict) -> str:
    """
    SGPA of the marks-entry subjects using the grade points worked out in
    final-grade mode. Subjects without a final result are left out.
    """
    grades = {
        subject_id: result["grade_point"]
        for subject_id, result in (results or {}).items()
        if result and result.get("grade_point") is not None
    }
    return calculate_cycle_sgpa(subjects, grades)
