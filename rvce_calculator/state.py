# rvce_calculator/state.py

from dataclasses import dataclass, field
from typing import Dict

from rvce_calculator.backend_logic import (
    CycleSelection,
    calculate_cgpa,
    calculate_cycle_sgpa,
    calculate_subject,
    sgpa_from_results,
)
from rvce_calculator.curriculum import (
    CHEMISTRY,
    CYCLES,
    GRADE_LETTERS,
    MARK_FIELDS,
    MODES,
    PHYSICS,
    Subject,
    cgpa_subjects_for,
    find_subject,
    subjects_for,
)
from rvce_calculator.logger import get_logger
from rvce_calculator.persistence import (
    CURRENT_CYCLE,
    CURRENT_MODE,
    FINAL_CGPA_GRADES,
    FORM_DATA,
    SGPA_VALUES,
    STORAGE_KEYS,
    PersistenceAdapter,
)
from rvce_calculator.validation import ValidationResult, validate_mark, validate_sgpa

log = get_logger("state")


def _clean_sgpa(raw) -> str:
    """Saved or typed SGPA as stored text; anything that is not a number in 0-10 is blank."""
    if raw is None:
        return ""
    raw = str(raw).strip()
    if not validate_sgpa(raw).ok:
        log.warning(f"Dropping SGPA value {raw!r}")
        return ""
    try:
        float(raw)
    except ValueError:
        return ""
    return raw


def _clean_form_data(saved: Dict) -> Dict[str, Dict[str, str]]:
    """
    Saved marks go through the same checks as typed ones. Unknown subjects
    and marks that would be rejected at entry are dropped.
    """
    form_data = {}
    for subject_id, entry in saved.items():
        subject = find_subject(subject_id)
        if subject is None or not isinstance(entry, dict):
            log.warning(f"Dropping saved marks for {subject_id!r}")
            continue
        kept = {}
        for field_name, raw in entry.items():
            if field_name not in MARK_FIELDS or isinstance(raw, (dict, list, bool)):
                log.warning(f"Dropping saved {subject_id} {field_name}")
                continue
            raw = "" if raw is None else str(raw).strip()
            if not validate_mark(field_name, raw, subject.type).ok:
                log.warning(f"Dropping saved {subject_id} {field_name}={raw!r}")
                continue
            kept[field_name] = raw
        form_data[subject_id] = kept
    return form_data


@dataclass
class DraftState:
    """
    Everything the user has typed or picked so far. The UI owns one of these
    and hands it the adapter whenever a change should be written through.
    """
    form_data: Dict[str, Dict[str, str]] = field(default_factory=dict)
    sgpa_values: Dict[str, str] = field(default_factory=lambda: {PHYSICS: "", CHEMISTRY: ""})
    sgpa_enabled: Dict[str, bool] = field(default_factory=lambda: {PHYSICS: False, CHEMISTRY: False})
    final_cgpa_grades: Dict[str, Dict[str, int]] = field(default_factory=lambda: {PHYSICS: {}, CHEMISTRY: {}})
    current_mode: str = ""
    current_cycle: str = ""
    results: Dict[str, Dict] = field(default_factory=dict)

    # ------------------------
    # Load / save
    # ------------------------
    @classmethod
    def restore(cls, adapter: PersistenceAdapter) -> "DraftState":
        buckets = adapter.load_all()
        state = cls()

        state.form_data = _clean_form_data(buckets[FORM_DATA])

        saved_values = buckets[SGPA_VALUES]
        saved_grades = buckets[FINAL_CGPA_GRADES]
        for cycle in CYCLES:
            value = _clean_sgpa(saved_values.get(cycle))
            state.sgpa_values[cycle] = value
            # a saved SGPA means the override was switched on
            state.sgpa_enabled[cycle] = value != ""
            grades = saved_grades.get(cycle)
            if isinstance(grades, dict):
                state.final_cgpa_grades[cycle] = {
                    k: v for k, v in grades.items() if isinstance(v, int) and not isinstance(v, bool) and v in GRADE_LETTERS
                }

        mode = buckets[CURRENT_MODE]
        state.current_mode = mode if isinstance(mode, str) and mode in MODES else ""
        cycle = buckets[CURRENT_CYCLE]
        state.current_cycle = cycle if isinstance(cycle, str) and cycle in CYCLES else ""

        log.info(
            f"Restored draft: {len(state.form_data)} subject(s), "
            f"mode={state.current_mode or '-'}, cycle={state.current_cycle or '-'}"
        )
        return state

    def persist(self, adapter: PersistenceAdapter) -> None:
        adapter.save(FORM_DATA, self.form_data)
        adapter.save(SGPA_VALUES, self.sgpa_values)
        adapter.save(FINAL_CGPA_GRADES, self.final_cgpa_grades)
        adapter.save(CURRENT_MODE, self.current_mode)
        adapter.save(CURRENT_CYCLE, self.current_cycle)

    # ------------------------
    # Marks entry
    # ------------------------
    def set_mark(self, subject: Subject, field_name: str, raw,
                 adapter: PersistenceAdapter | None = None) -> ValidationResult:
        """Accept the edit only if it validates; a rejected edit keeps the old value."""
        check = validate_mark(field_name, raw, subject.type)
        if not check.ok:
            return check

        value = "" if raw is None else str(raw).strip()
        self.form_data.setdefault(subject.id, {})[field_name] = value
        if adapter is not None:
            adapter.save(FORM_DATA, self.form_data)
        return check

    def calculate(self, subject: Subject) -> Dict:
        result = calculate_subject(subject, self.form_data.get(subject.id, {}), self.current_mode)
        self.results[subject.id] = result
        return result

    def current_sgpa(self) -> str:
        return sgpa_from_results(subjects_for(self.current_cycle), self.results)

    def set_mode(self, mode: str, adapter: PersistenceAdapter | None = None) -> None:
        self.current_mode = mode if mode in MODES else ""
        if adapter is not None:
            adapter.save(CURRENT_MODE, self.current_mode)

    def set_cycle(self, cycle: str, adapter: PersistenceAdapter | None = None) -> None:
        self.current_cycle = cycle if cycle in CYCLES else ""
        if adapter is not None:
            adapter.save(CURRENT_CYCLE, self.current_cycle)

    # ------------------------
    # GPA view
    # ------------------------
    def set_final_grade(self, cycle: str, subject_id: str, grade,
                        adapter: PersistenceAdapter | None = None) -> bool:
        grades = self.final_cgpa_grades.setdefault(cycle, {})
        if grade is None or grade == "":
            grades.pop(subject_id, None)
        else:
            try:
                grade = int(grade)
            except (TypeError, ValueError):
                grade = None
            if grade not in GRADE_LETTERS:
                log.warning(f"Ignoring grade {grade} for {subject_id}")
                return False
            grades[subject_id] = grade

        if adapter is not None:
            adapter.save(FINAL_CGPA_GRADES, self.final_cgpa_grades)
        return True

    def toggle_override(self, cycle: str, adapter: PersistenceAdapter | None = None) -> bool:
        enabled = not self.sgpa_enabled.get(cycle, False)
        self.sgpa_enabled[cycle] = enabled
        if enabled:
            # typed SGPA replaces the per-subject grades of this cycle
            self.final_cgpa_grades[cycle] = {}
        else:
            self.sgpa_values[cycle] = ""

        if adapter is not None:
            adapter.save(FINAL_CGPA_GRADES, self.final_cgpa_grades)
            adapter.save(SGPA_VALUES, self.sgpa_values)
        return enabled

    def set_sgpa_value(self, cycle: str, raw,
                       adapter: PersistenceAdapter | None = None) -> ValidationResult:
        check = validate_sgpa(raw)
        if not check.ok:
            return check

        self.sgpa_values[cycle] = _clean_sgpa(raw)
        if adapter is not None:
            adapter.save(SGPA_VALUES, self.sgpa_values)
        return check

    def cycle_selection(self, cycle: str) -> CycleSelection:
        override = self.sgpa_values.get(cycle) if self.sgpa_enabled.get(cycle) else None
        return CycleSelection(
            subjects=cgpa_subjects_for(cycle),
            grades=self.final_cgpa_grades.get(cycle, {}),
            override=override or None,
        )

    def cycle_sgpa(self, cycle: str) -> str:
        selection = self.cycle_selection(cycle)
        return calculate_cycle_sgpa(selection.subjects, selection.grades, selection.override)

    def cgpa(self) -> str:
        return calculate_cgpa([self.cycle_selection(cycle) for cycle in CYCLES])

    # ------------------------
    # Resets
    # ------------------------
    def reset_all(self, adapter: PersistenceAdapter | None = None) -> None:
        fresh = DraftState()
        self.__dict__.update(fresh.__dict__)
        if adapter is not None:
            adapter.clear(STORAGE_KEYS)
        log.info("Cleared all saved calculator data")

    def reset_cie_marks(self, adapter: PersistenceAdapter | None = None) -> None:
        self.form_data = {}
        self.results = {}
        if adapter is not None:
            adapter.save(FORM_DATA, self.form_data)

    def reset_final_gpa(self, adapter: PersistenceAdapter | None = None) -> None:
        fresh = DraftState()
        self.final_cgpa_grades = fresh.final_cgpa_grades
        self.sgpa_values = fresh.sgpa_values
        self.sgpa_enabled = fresh.sgpa_enabled
        if adapter is not None:
            adapter.save(FINAL_CGPA_GRADES, self.final_cgpa_grades)
            adapter.save(SGPA_VALUES, self.sgpa_values)
