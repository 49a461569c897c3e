import streamlit as st

from rvce_calculator.backend_logic import grade_letter, see_requirement_summary
from rvce_calculator.curriculum import (
    CYCLES,
    FIELD_LABELS,
    GRADE_OPTIONS,
    MODE_CIE,
    MODE_FINAL_CGPA,
    MODE_FINAL_GRADE,
    MODES,
    cgpa_subjects_for,
    subjects_for,
)
from rvce_calculator.io_csv import (
    parse_marks,
    read_csv_upload,
    results_frame,
    see_requirements_frame,
    validate_marks_csv,
)
from rvce_calculator.persistence import PersistenceAdapter
from rvce_calculator.state import DraftState
from rvce_calculator.validation import field_max, fields_for

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="RVCE CIE, Grade & CGPA Calculator",
    page_icon="🎓",
    layout="wide",
)

if "adapter" not in st.session_state:
    st.session_state["adapter"] = PersistenceAdapter()
if "draft" not in st.session_state:
    st.session_state["draft"] = DraftState.restore(st.session_state["adapter"])

adapter: PersistenceAdapter = st.session_state["adapter"]
draft: DraftState = st.session_state["draft"]


def _forget_widgets(*prefixes):
    # widgets keep their own value across reruns, drop them after a reset
    for key in list(st.session_state.keys()):
        if key.startswith(prefixes):
            del st.session_state[key]


st.title("🎓 CIE, Grade & CGPA Calculator")
st.write(
    "Work out CIE totals, the SEE marks you need for each grade, final grades, "
    "SGPA for each cycle and the overall CGPA. Entries are saved on this machine."
)

mode_ids = [""] + list(MODES)
mode = st.selectbox(
    "Calculator",
    mode_ids,
    index=mode_ids.index(draft.current_mode),
    format_func=lambda m: MODES.get(m, "Choose a calculator"),
)
if mode != draft.current_mode:
    draft.set_mode(mode, adapter)
    draft.results = {}


def _subject_card(subject):
    """Inputs and result for one subject in the marks-entry modes."""
    st.markdown(f"**{subject.name}** ({subject.credits} credits)")
    entry = draft.form_data.get(subject.id, {})

    cols = st.columns(2)
    for idx, field in enumerate(fields_for(subject.type, draft.current_mode)):
        with cols[idx % 2]:
            label = f"{FIELD_LABELS[field]} (max {field_max(field, subject.type)})"
            raw = st.text_input(label, value=entry.get(field, ""), key=f"{subject.id}_{field}")
            if raw != entry.get(field, ""):
                check = draft.set_mark(subject, field, raw, adapter)
                if not check.ok:
                    st.error(check.message)

    if st.button("Calculate", key=f"calc_{subject.id}"):
        draft.calculate(subject)

    result = draft.results.get(subject.id)
    if not result:
        return

    if result["type"] == "cie":
        st.metric("CIE", result["cie_total"])
        with st.expander("SEE marks required"):
            summary = see_requirement_summary(result["cie_total"])
            if not summary["cie_eligible"]:
                st.warning("CIE is below 40, so the subject cannot be passed this attempt.")
            st.dataframe(see_requirements_frame(summary), hide_index=True)
            st.caption(
                f"Minimum SEE (35 marks) gives grade {summary['grade_at_pass_see']} "
                f"({summary['letter_at_pass_see']})"
            )
    else:
        st.metric(
            "Grade",
            f"{result['grade_point']} ({grade_letter(result['grade_point'])})",
        )
        st.caption(f"CIE: {result['cie_total']} | Total: {result['total']:.2f}")


def _marks_view():
    cycle_ids = [""] + list(CYCLES)
    cycle = st.radio(
        "Cycle",
        cycle_ids,
        index=cycle_ids.index(draft.current_cycle),
        format_func=lambda c: CYCLES.get(c, "None"),
        horizontal=True,
    )
    if cycle != draft.current_cycle:
        draft.set_cycle(cycle, adapter)
    if not draft.current_cycle:
        st.info("Pick a cycle to start entering marks.")
        return

    subjects = subjects_for(draft.current_cycle)

    uploaded = st.file_uploader(
        "Optionally upload marks CSV (Subject, Q1, Q2, T1, T2, MATLAB, Lab, EL, SEE)",
        type=["csv"],
        key="marks_csv",
    )
    if uploaded is not None and st.button("Load marks from CSV"):
        try:
            entries = parse_marks(validate_marks_csv(read_csv_upload(uploaded)), subjects)
        except ValueError as e:
            st.error(f"Marks CSV error: {e}")
        else:
            for subject_id, entry in entries.items():
                draft.form_data.setdefault(subject_id, {}).update(entry)
            draft.persist(adapter)
            st.rerun()

    cols = st.columns(3)
    for idx, subject in enumerate(subjects):
        with cols[idx % 3]:
            with st.container(border=True):
                _subject_card(subject)

    if draft.current_mode == MODE_FINAL_GRADE and draft.results:
        st.subheader("Summary")
        st.dataframe(results_frame(subjects, draft.results), hide_index=True)
        st.metric(f"{CYCLES[draft.current_cycle]} SGPA", draft.current_sgpa())

    if st.button("Reset marks"):
        draft.reset_cie_marks(adapter)
        _forget_widgets(*(f"{s.id}_" for s in subjects))
        st.rerun()


def _gpa_view():
    cols = st.columns(2)
    for col, cycle in zip(cols, CYCLES):
        with col, st.container(border=True):
            st.subheader(CYCLES[cycle])
            enabled = st.toggle(
                "I already know my SGPA",
                value=draft.sgpa_enabled[cycle],
                key=f"override_{cycle}",
            )
            if enabled != draft.sgpa_enabled[cycle]:
                draft.toggle_override(cycle, adapter)
                _forget_widgets(f"grade_{cycle}_", f"sgpa_{cycle}")
                st.rerun()

            if draft.sgpa_enabled[cycle]:
                raw = st.text_input("SGPA", value=draft.sgpa_values[cycle], key=f"sgpa_{cycle}")
                if raw != draft.sgpa_values[cycle]:
                    check = draft.set_sgpa_value(cycle, raw, adapter)
                    if not check.ok:
                        st.error(check.message)

            options = [None] + [value for value, _ in GRADE_OPTIONS]
            labels = dict(GRADE_OPTIONS)
            grades = draft.final_cgpa_grades[cycle]
            for subject in cgpa_subjects_for(cycle):
                picked = st.selectbox(
                    f"{subject.name} ({subject.credits} credits)",
                    options,
                    index=options.index(grades.get(subject.id)),
                    format_func=lambda v: labels.get(v, "Select Grade"),
                    disabled=draft.sgpa_enabled[cycle],
                    key=f"grade_{cycle}_{subject.id}",
                )
                if picked != grades.get(subject.id):
                    draft.set_final_grade(cycle, subject.id, picked, adapter)

            st.metric("SGPA", draft.cycle_sgpa(cycle))

    st.metric("Final CGPA", draft.cgpa())

    if st.button("Reset grades"):
        draft.reset_final_gpa(adapter)
        _forget_widgets("override_", "sgpa_", "grade_")
        st.rerun()


if draft.current_mode in (MODE_CIE, MODE_FINAL_GRADE):
    _marks_view()
elif draft.current_mode == MODE_FINAL_CGPA:
    _gpa_view()
else:
    st.info("Choose a calculator above to get started.")

st.markdown("---")
if st.button("Clear all saved data"):
    draft.reset_all(adapter)
    _forget_widgets(*[k for k in st.session_state.keys() if k not in ("adapter", "draft")])
    st.rerun()
