import pandas as pd
from typing import Dict, List

from rvce_calculator.curriculum import FIELD_LABELS, MARK_FIELDS, Subject
from rvce_calculator.validation import validate_mark

# ------------------------
# CSV helpers (UI-side)
# ------------------------

# header spellings accepted for each mark field
_COLUMN_ALIASES = {
    label.lower(): field for field, label in FIELD_LABELS.items()
}
_COLUMN_ALIASES.update({"subject id": "subject", "id": "subject"})


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    renames = {
        c: _COLUMN_ALIASES[c]
        for c in df.columns
        if c in _COLUMN_ALIASES and _COLUMN_ALIASES[c] not in df.columns
    }
    return df.rename(columns=renames)


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    # keep marks as text so "7.50" reaches the validator untouched
    df = pd.read_csv(uploaded_file, dtype=str)
    return _normalise_cols(df)


def validate_marks_csv(df: pd.DataFrame) -> pd.DataFrame:
    if "subject" not in df.columns:
        raise ValueError("Missing column: Subject. Expected: Subject, Q1, Q2, T1, T2, ...")
    fields = [f for f in MARK_FIELDS if f in df.columns]
    if not fields:
        raise ValueError(
            f"No mark columns found. Expected some of: {', '.join(MARK_FIELDS)}."
        )
    return df[["subject"] + fields].copy()


def parse_marks(df: pd.DataFrame, subjects: List[Subject]) -> Dict[str, Dict[str, str]]:
    """
    Turn an uploaded marks table into form entries keyed by subject id.
    Blank cells are skipped; unknown subjects and out-of-range marks are
    collected and reported together.
    """
    by_id = {s.id: s for s in subjects}
    entries: Dict[str, Dict[str, str]] = {}
    problems = []

    for _, row in df.iterrows():
        subject_id = row.get("subject")
        if pd.isna(subject_id):
            continue
        subject_id = str(subject_id).strip()
        subject = by_id.get(subject_id)
        if subject is None:
            problems.append(f"unknown subject '{subject_id}'")
            continue

        entry = entries.setdefault(subject.id, {})
        for field in MARK_FIELDS:
            if field not in df.columns:
                continue
            raw = row.get(field)
            if pd.isna(raw) or str(raw).strip() == "":
                continue
            raw = str(raw).strip()
            check = validate_mark(field, raw, subject.type)
            if not check.ok:
                problems.append(f"{subject.id} {field}: {check.message}")
                continue
            entry[field] = raw

    if problems:
        raise ValueError("; ".join(problems))
    return entries


# ------------------------
# Display tables
# ------------------------

def see_requirements_frame(summary: Dict) -> pd.DataFrame:
    rows = [
        {
            "Grade": item["grade"],
            "Letter": item["letter"],
            "SEE required": float(item["see_required"]),
        }
        for item in summary["requirements"]
    ]
    return pd.DataFrame(rows, columns=["Grade", "Letter", "SEE required"])


def results_frame(subjects: List[Subject], results: Dict) -> pd.DataFrame:
    rows = []
    for subject in subjects:
        result = results.get(subject.id)
        if not result:
            continue
        rows.append({
            "Subject": subject.name,
            "Credits": subject.credits,
            "CIE": result["cie_total"],
            "SEE": result.get("see"),
            "Total": result.get("total"),
            "Grade": result.get("grade_point"),
            "Letter": result.get("letter"),
        })
    return pd.DataFrame(
        rows, columns=["Subject", "Credits", "CIE", "SEE", "Total", "Grade", "Letter"]
    )
