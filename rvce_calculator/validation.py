import re
from typing import List, NamedTuple

from rvce_calculator.curriculum import EL_MAXIMA, FIELD_MAXIMA, MODE_FINAL_GRADE

NUMERIC_RE = re.compile(r"^[0-9]*\.?[0-9]*$")

NUMERIC_ONLY_MESSAGE = "Enter numeric Values Only"


class ValidationResult(NamedTuple):
    ok: bool
    message: str = ""


def field_max(field: str, subject_type: str) -> int:
    if field == "el":
        return EL_MAXIMA.get(subject_type, EL_MAXIMA["regular"])
    return FIELD_MAXIMA.get(field, 100)


def fields_for(subject_type: str, mode: str) -> List[str]:
    """Input fields of a subject card, in entry order."""
    fields = ["q1", "q2", "t1", "t2"]
    if subject_type == "math":
        fields += ["matlab", "el"]
    elif subject_type == "lab":
        fields += ["lab", "el"]
    else:
        fields += ["el"]
    if mode == MODE_FINAL_GRADE:
        fields.append("see")
    return fields


def _check_range(raw: str, maximum: float) -> ValidationResult:
    if raw == "":
        return ValidationResult(True)
    if not NUMERIC_RE.match(raw):
        return ValidationResult(False, NUMERIC_ONLY_MESSAGE)

    try:
        value = float(raw)
    except ValueError:
        # a lone "." passes the pattern
        value = 0.0
    if value > maximum:
        return ValidationResult(False, f"Maximum value allowed is {maximum:g}")
    return ValidationResult(True)


def validate_mark(field: str, raw, subject_type: str) -> ValidationResult:
    """
    Check one edited mark before it is accepted. Empty input is allowed
    (it counts as 0); otherwise only digits with an optional decimal point,
    no larger than the field maximum.
    """
    raw = "" if raw is None else str(raw).strip()
    return _check_range(raw, field_max(field, subject_type))


def validate_sgpa(raw) -> ValidationResult:
    raw = "" if raw is None else str(raw).strip()
    return _check_range(raw, 10)
