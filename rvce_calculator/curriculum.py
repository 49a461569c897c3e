from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    credits: int
    type: str  # "math", "lab" or "regular"


# ------------------------
# Modes & cycles
# ------------------------
MODE_CIE = "cie-final"
MODE_FINAL_GRADE = "final-grade"
MODE_FINAL_CGPA = "final-cgpa"

MODES = {
    MODE_CIE: "CIE Finalization & SEE Marks Required",
    MODE_FINAL_GRADE: "Final Grade Calculator",
    MODE_FINAL_CGPA: "Final GPA Calculator",
}

PHYSICS = "physics"
CHEMISTRY = "chemistry"

CYCLES = {
    PHYSICS: "Physics Cycle",
    CHEMISTRY: "Chemistry Cycle",
}

# ------------------------
# Subjects
# ------------------------
PHYSICS_SUBJECTS = [
    Subject("math", "Mathematics", 4, "math"),
    Subject("phy", "Physics", 4, "lab"),
    Subject("esc-p", "ESC", 3, "regular"),
    Subject("etc", "ETC", 3, "regular"),
    Subject("core", "Core", 3, "regular"),
]

CHEMISTRY_SUBJECTS = [
    Subject("math-c", "Mathematics", 4, "math"),
    Subject("chem", "Chemistry", 4, "lab"),
    Subject("esc-c", "ESC", 3, "regular"),
    Subject("plc", "PLC", 3, "lab"),
]

# GPA view also lists the low-credit courses (20 credits per cycle)
PHYSICS_SUBJECTS_CGPA = PHYSICS_SUBJECTS + [
    Subject("idea-lab", "IDEA Lab", 1, "regular"),
    Subject("comm-eng-p", "Communicative English", 1, "regular"),
    Subject("kannada", "Kannada", 1, "regular"),
]

CHEMISTRY_SUBJECTS_CGPA = CHEMISTRY_SUBJECTS + [
    Subject("caeg", "Computer Aided Engineering Graphics", 3, "regular"),
    Subject("comm-eng-c", "Communicative English", 1, "regular"),
    Subject("constitution", "Fundamentals of Indian Constitution", 1, "regular"),
    Subject("yoga", "Yoga", 1, "regular"),
]


def subjects_for(cycle: str) -> List[Subject]:
    return PHYSICS_SUBJECTS if cycle == PHYSICS else CHEMISTRY_SUBJECTS


def cgpa_subjects_for(cycle: str) -> List[Subject]:
    return PHYSICS_SUBJECTS_CGPA if cycle == PHYSICS else CHEMISTRY_SUBJECTS_CGPA


def find_subject(subject_id: str) -> Subject | None:
    for subject in PHYSICS_SUBJECTS_CGPA + CHEMISTRY_SUBJECTS_CGPA:
        if subject.id == subject_id:
            return subject
    return None


# ------------------------
# Marks & grades
# ------------------------
MARK_FIELDS = ("q1", "q2", "t1", "t2", "matlab", "lab", "el", "see")

FIELD_MAXIMA = {
    "q1": 10,
    "q2": 10,
    "t1": 50,
    "t2": 50,
    "matlab": 20,
    "lab": 30,
    "see": 100,
}

# EL is weighted differently per subject type
EL_MAXIMA = {
    "math": 20,
    "lab": 30,
    "regular": 40,
}

FIELD_LABELS = {
    "q1": "Quiz 1",
    "q2": "Quiz 2",
    "t1": "Test 1",
    "t2": "Test 2",
    "matlab": "MATLAB",
    "lab": "Lab",
    "el": "EL",
    "see": "SEE",
}

GRADE_LETTERS: Dict[int, str] = {
    10: "O",
    9: "A+",
    8: "A",
    7: "B+",
    6: "B",
    5: "C",
    4: "P",
    0: "F",
}

# (value, label) pairs for the GPA grade pickers
GRADE_OPTIONS: List[Tuple[int, str]] = [
    (value, f"{letter} ({value})") for value, letter in GRADE_LETTERS.items()
]

PASS_CIE = 40
PASS_SEE = 35
MAX_SEE = 100
