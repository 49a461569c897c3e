import pytest

from rvce_calculator.curriculum import (
    CHEMISTRY,
    MODE_CIE,
    MODE_FINAL_CGPA,
    MODE_FINAL_GRADE,
    PHYSICS,
    PHYSICS_SUBJECTS,
    Subject,
)
from rvce_calculator.persistence import (
    CURRENT_CYCLE,
    CURRENT_MODE,
    FINAL_CGPA_GRADES,
    FORM_DATA,
    SGPA_VALUES,
    MemoryStore,
    PersistenceAdapter,
)
from rvce_calculator.state import DraftState

MATH = Subject("math", "Mathematics", 4, "math")
ESC = Subject("esc-p", "ESC", 3, "regular")


@pytest.fixture
def adapter():
    return PersistenceAdapter(MemoryStore(), namespace="test")


def _enter(draft, subject, marks, adapter=None):
    for field, value in marks.items():
        assert draft.set_mark(subject, field, value, adapter).ok


def test_fresh_draft():
    draft = DraftState()
    assert draft.form_data == {}
    assert draft.sgpa_values == {PHYSICS: "", CHEMISTRY: ""}
    assert draft.sgpa_enabled == {PHYSICS: False, CHEMISTRY: False}
    assert draft.cgpa() == "0.00"


def test_set_mark_is_saved(adapter):
    draft = DraftState()
    assert draft.set_mark(MATH, "q1", "8", adapter).ok
    assert adapter.load(FORM_DATA) == {"math": {"q1": "8"}}


def test_rejected_mark_keeps_previous_value(adapter):
    draft = DraftState()
    draft.set_mark(MATH, "q1", "8", adapter)

    check = draft.set_mark(MATH, "q1", "8a", adapter)
    assert check.message == "Enter numeric Values Only"
    check = draft.set_mark(MATH, "q1", "12", adapter)
    assert check.message == "Maximum value allowed is 10"

    assert draft.form_data["math"]["q1"] == "8"
    assert adapter.load(FORM_DATA) == {"math": {"q1": "8"}}


def test_calculate_in_both_modes():
    draft = DraftState()
    _enter(draft, MATH, {"q1": "8", "q2": "9", "t1": "40", "t2": "35",
                         "matlab": "15", "el": "18", "see": "70"})

    draft.set_mode(MODE_CIE)
    assert draft.calculate(MATH) == {"cie_total": 80, "type": "cie"}

    draft.set_mode(MODE_FINAL_GRADE)
    result = draft.calculate(MATH)
    assert result["grade_point"] == 8
    assert draft.results["math"] is result


def test_current_sgpa_from_final_results():
    draft = DraftState(current_mode=MODE_FINAL_GRADE, current_cycle=PHYSICS)
    _enter(draft, MATH, {"q1": "8", "q2": "9", "t1": "40", "t2": "35",
                         "matlab": "15", "el": "18", "see": "70"})
    # 20 + 40 + 40 = 100 CIE, with SEE 80 -> 90 -> grade 10
    _enter(draft, ESC, {"q1": "10", "q2": "10", "t1": "50", "t2": "50",
                        "el": "40", "see": "80"})
    draft.calculate(MATH)
    draft.calculate(ESC)
    # (8*4 + 10*3) / 7
    assert draft.current_sgpa() == "8.86"


def test_mode_and_cycle_are_validated(adapter):
    draft = DraftState()
    draft.set_mode(MODE_FINAL_CGPA, adapter)
    draft.set_cycle("biology", adapter)
    assert draft.current_mode == MODE_FINAL_CGPA
    assert draft.current_cycle == ""
    assert adapter.load(CURRENT_MODE) == MODE_FINAL_CGPA


def test_final_grades(adapter):
    draft = DraftState()
    assert draft.set_final_grade(PHYSICS, "math", "9", adapter)
    assert draft.set_final_grade(PHYSICS, "phy", 8, adapter)
    assert not draft.set_final_grade(PHYSICS, "etc", 3, adapter)
    assert not draft.set_final_grade(PHYSICS, "etc", "x", adapter)
    assert draft.final_cgpa_grades[PHYSICS] == {"math": 9, "phy": 8}
    assert draft.cycle_sgpa(PHYSICS) == "8.50"

    draft.set_final_grade(PHYSICS, "phy", "", adapter)
    assert adapter.load(FINAL_CGPA_GRADES) == {PHYSICS: {"math": 9}, CHEMISTRY: {}}


def test_override_toggle(adapter):
    draft = DraftState()
    draft.set_final_grade(PHYSICS, "math", 9)

    assert draft.toggle_override(PHYSICS, adapter) is True
    assert draft.final_cgpa_grades[PHYSICS] == {}
    assert draft.set_sgpa_value(PHYSICS, "8.75", adapter).ok
    assert not draft.set_sgpa_value(PHYSICS, "11", adapter).ok
    assert draft.cycle_sgpa(PHYSICS) == "8.75"
    assert adapter.load(SGPA_VALUES) == {PHYSICS: "8.75", CHEMISTRY: ""}

    assert draft.toggle_override(PHYSICS, adapter) is False
    assert draft.sgpa_values[PHYSICS] == ""
    assert draft.cycle_sgpa(PHYSICS) == "0.00"


def test_override_without_value_uses_subjects():
    draft = DraftState()
    draft.toggle_override(CHEMISTRY)
    draft.final_cgpa_grades[CHEMISTRY] = {"math-c": 7}
    assert draft.cycle_sgpa(CHEMISTRY) == "7.00"


def test_cgpa_mixes_override_and_grades():
    draft = DraftState()
    draft.toggle_override(PHYSICS)
    draft.set_sgpa_value(PHYSICS, "9")
    draft.set_final_grade(CHEMISTRY, "math-c", 10)
    # (9*20 + 10*4) / 24
    assert draft.cgpa() == "9.17"


def test_bare_dot_sgpa_is_blank():
    draft = DraftState()
    draft.toggle_override(PHYSICS)
    draft.final_cgpa_grades[PHYSICS] = {"math": 7}

    assert draft.set_sgpa_value(PHYSICS, ".").ok
    assert draft.sgpa_values[PHYSICS] == ""
    assert draft.cycle_sgpa(PHYSICS) == "7.00"


def test_restore_round_trip(adapter):
    draft = DraftState()
    draft.set_mode(MODE_FINAL_GRADE)
    draft.set_cycle(CHEMISTRY)
    draft.set_mark(MATH, "q1", "7")
    draft.toggle_override(PHYSICS)
    draft.set_sgpa_value(PHYSICS, "8.2")
    draft.set_final_grade(CHEMISTRY, "chem", 10)
    draft.persist(adapter)

    restored = DraftState.restore(adapter)
    assert restored.current_mode == MODE_FINAL_GRADE
    assert restored.current_cycle == CHEMISTRY
    assert restored.form_data == {"math": {"q1": "7"}}
    assert restored.sgpa_values == {PHYSICS: "8.2", CHEMISTRY: ""}
    assert restored.sgpa_enabled == {PHYSICS: True, CHEMISTRY: False}
    assert restored.final_cgpa_grades == {PHYSICS: {}, CHEMISTRY: {"chem": 10}}
    assert restored.results == {}


def test_restore_drops_bad_buckets(adapter):
    adapter.save(CURRENT_MODE, "nonsense")
    adapter.save(FINAL_CGPA_GRADES, {PHYSICS: {"math": 3, "phy": 9}, CHEMISTRY: []})
    adapter.store.set_item(adapter.key(FORM_DATA), "{broken")

    restored = DraftState.restore(adapter)
    assert restored.current_mode == ""
    assert restored.form_data == {}
    assert restored.final_cgpa_grades == {PHYSICS: {"phy": 9}, CHEMISTRY: {}}


def test_restore_ignores_mode_and_cycle_of_the_wrong_type(adapter):
    adapter.save(FORM_DATA, {"math": {"q1": "7"}})
    adapter.store.set_item(adapter.key(CURRENT_MODE), '{"x": 1}')
    adapter.store.set_item(adapter.key(CURRENT_CYCLE), '["physics"]')

    restored = DraftState.restore(adapter)
    assert restored.current_mode == ""
    assert restored.current_cycle == ""
    assert restored.form_data == {"math": {"q1": "7"}}


def test_restore_drops_marks_that_would_be_rejected(adapter):
    adapter.save(FORM_DATA, {
        "math": {"q1": "999", "el": "abc", "t1": "40", "grade": "9"},
        "biology": {"q1": "5"},
        "phy": "8",
    })

    restored = DraftState.restore(adapter)
    assert restored.form_data == {"math": {"t1": "40"}}

    restored.set_mode(MODE_CIE)
    assert restored.calculate(MATH)["cie_total"] == 16


def test_restore_drops_bad_sgpa_values(adapter):
    adapter.save(SGPA_VALUES, {PHYSICS: "abc", CHEMISTRY: "8.5"})

    restored = DraftState.restore(adapter)
    assert restored.sgpa_values == {PHYSICS: "", CHEMISTRY: "8.5"}
    assert restored.sgpa_enabled == {PHYSICS: False, CHEMISTRY: True}
    # chemistry counts at 20 credits, physics not at all
    assert restored.cgpa() == "8.50"


def test_restore_drops_out_of_range_and_bare_dot_sgpa(adapter):
    adapter.save(SGPA_VALUES, {PHYSICS: "10.5", CHEMISTRY: "."})

    restored = DraftState.restore(adapter)
    assert restored.sgpa_values == {PHYSICS: "", CHEMISTRY: ""}
    assert restored.sgpa_enabled == {PHYSICS: False, CHEMISTRY: False}


def test_reset_cie_marks(adapter):
    draft = DraftState(current_mode=MODE_CIE)
    draft.set_mark(MATH, "q1", "7", adapter)
    draft.calculate(MATH)
    draft.set_final_grade(PHYSICS, "math", 9, adapter)

    draft.reset_cie_marks(adapter)
    assert draft.form_data == {}
    assert draft.results == {}
    assert adapter.load(FORM_DATA) == {}
    assert adapter.load(FINAL_CGPA_GRADES)[PHYSICS] == {"math": 9}


def test_reset_final_gpa(adapter):
    draft = DraftState()
    draft.set_mark(MATH, "q1", "7", adapter)
    draft.toggle_override(PHYSICS, adapter)
    draft.set_sgpa_value(PHYSICS, "9", adapter)
    draft.set_final_grade(CHEMISTRY, "chem", 10, adapter)

    draft.reset_final_gpa(adapter)
    assert draft.sgpa_enabled == {PHYSICS: False, CHEMISTRY: False}
    assert adapter.load(SGPA_VALUES) == {PHYSICS: "", CHEMISTRY: ""}
    assert adapter.load(FINAL_CGPA_GRADES) == {PHYSICS: {}, CHEMISTRY: {}}
    assert adapter.load(FORM_DATA) == {"math": {"q1": "7"}}


def test_reset_all(adapter):
    draft = DraftState()
    draft.set_mode(MODE_CIE)
    draft.set_cycle(PHYSICS)
    for subject in PHYSICS_SUBJECTS:
        draft.set_mark(subject, "q1", "5")
    draft.persist(adapter)

    draft.reset_all(adapter)
    assert draft == DraftState()
    assert adapter.load(FORM_DATA) == {}
    assert DraftState.restore(adapter) == DraftState()
