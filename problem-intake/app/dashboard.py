"""Problem Intake -- Streamlit dashboard.

Renders the intake form from the CSV field catalog, one collapsible panel
per section. Fields appear and disappear as the budget, duration and
problem category change the project's classification, and as the answers
other fields depend on change. Answers are autosaved locally and submitted
to the API server, or kept in a local outbox while it is unreachable.
"""

from __future__ import annotations

import html as html_mod
from datetime import date

import streamlit as st

from app import draft_store
from app.audit_log import log_action
from app.catalog import load_catalog
from app.client import SubmissionClient
from app.progress import calculate_completion
from app.propagation import FormSession, PassResult
from app.schema import FieldDescriptor

# -- Page config --------------------------------------------------------------

st.set_page_config(
    page_title="Problem Intake -- Talent Hub",
    layout="wide",
    initial_sidebar_state="expanded",
)

# -- CSS ----------------------------------------------------------------------

st.markdown(
    """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap');

#MainMenu, footer,
div[data-testid="stToolbar"] { display: none !important; }

.stApp {
    font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
}

.nav-bar {
    display: flex;
    align-items: center;
    padding: 10px 4px;
    margin: -1rem 0 1.2rem 0;
    border-bottom: 1px solid rgba(0,0,0,0.07);
}
.nav-title {
    flex: 1;
    text-align: center;
    font-size: 1.15rem;
    font-weight: 700;
    color: #1a2744;
    letter-spacing: -0.02em;
}
.nav-sub {
    font-weight: 400;
    color: #86868b;
    font-size: 0.85rem;
    margin-left: 8px;
}

.section-label {
    font-size: 0.78rem;
    font-weight: 600;
    color: #5a6a85;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    margin-bottom: 4px;
    margin-top: 12px;
}

.classification {
    font-size: 0.85rem;
    color: #5a6a85;
    line-height: 1.6;
}

.progress-bar {
    background: #e8ecf0;
    border-radius: 6px;
    height: 10px;
    overflow: hidden;
    margin-bottom: 4px;
}
.progress-fill {
    height: 100%;
    background: #1a73e8;
    border-radius: 6px;
    transition: width 0.3s ease;
}

.ai-note {
    font-size: 0.8rem;
    color: #5a6a85;
    background: #f3f6fb;
    border-radius: 6px;
    padding: 8px 12px;
    margin-top: 6px;
}

.saved-toast {
    font-size: 0.8rem;
    color: #2e7d32;
    font-weight: 600;
}
</style>
""",
    unsafe_allow_html=True,
)

# -- Navigation bar -----------------------------------------------------------

st.markdown(
    """
<div class="nav-bar">
    <div class="nav-title">Problem Statement Intake<span class="nav-sub">&mdash; Talent Hub</span></div>
</div>
""",
    unsafe_allow_html=True,
)

# -- Session state defaults ---------------------------------------------------

if "form_session" not in st.session_state:
    try:
        _catalog = load_catalog()
    except FileNotFoundError:
        st.error("The form configuration could not be loaded. Please try again later.")
        st.stop()
    _session = FormSession(_catalog)
    _session.start()
    st.session_state.form_session = _session

_DEFAULTS: dict = {
    "client": SubmissionClient(),
    "autosave_decided": False,
    "last_saved_msg": "",
    "submit_result": None,
}
for _k, _v in _DEFAULTS.items():
    if _k not in st.session_state:
        st.session_state[_k] = _v

session: FormSession = st.session_state.form_session
section_titles = session.catalog.sections()
section_ids = {title: f"section-{i}" for i, title in enumerate(section_titles)}

# -- Helpers ------------------------------------------------------------------


def _forget_widgets(field_ids: list[str] | None = None) -> None:
    """Drop widget state so widgets re-read their value from the session."""
    prefixes = tuple(f"field_{fid}" for fid in field_ids) if field_ids is not None else ("field_",)
    for key in list(st.session_state.keys()):
        if isinstance(key, str) and key.startswith(prefixes):
            del st.session_state[key]


def _record(result: PassResult | None) -> None:
    """Forget widgets of cleared fields and audit classification changes."""
    if result is None:
        return
    if result.cleared:
        _forget_widgets(result.cleared)
    if result.classification_changed:
        log_action(
            "classification_changed",
            details={
                "from": result.previous_state.to_dict(),
                "to": result.state.to_dict(),
                "hidden": result.hidden,
                "shown": result.shown,
            },
        )


def _on_change(field_def: FieldDescriptor) -> None:
    """Widget callback: forward the widget's value to the form session."""
    key = f"field_{field_def.field_id}"
    if field_def.kind == "checkbox-group":
        value = [
            option for i, option in enumerate(field_def.options)
            if st.session_state.get(f"{key}_{i}")
        ]
    elif field_def.kind == "date":
        picked = st.session_state.get(key)
        value = picked.isoformat() if picked else ""
    else:
        value = st.session_state.get(key) or ""
    _record(session.edit(field_def.field_id, value))


def _collapsed() -> list[str]:
    saved = draft_store.load_collapsed_sections()
    if saved is None:
        # first load: everything collapsed
        saved = list(section_ids.values())
        draft_store.save_collapsed_sections(saved)
    return saved


def _render_field(field_def: FieldDescriptor) -> None:
    key = f"field_{field_def.field_id}"
    label = field_def.label + (" *" if field_def.required else "")
    help_text = field_def.instructions or None
    current = session.values[field_def.field_id]
    kwargs = {"key": key, "on_change": _on_change, "args": (field_def,)}

    if field_def.kind == "text":
        st.text_input(label, value=current, placeholder=field_def.placeholder, help=help_text, **kwargs)
    elif field_def.kind == "textarea":
        st.text_area(label, value=current, placeholder=field_def.placeholder, help=help_text, height=120, **kwargs)
    elif field_def.kind == "date":
        st.date_input(label, value=date.fromisoformat(current) if current else None, help=help_text, **kwargs)
    elif field_def.kind == "select":
        options = [""] + list(field_def.options)
        index = options.index(current) if current in options else 0
        st.selectbox(
            label,
            options=options,
            index=index,
            format_func=lambda o: o or "Select option...",
            help=help_text,
            **kwargs,
        )
    elif field_def.kind == "radio-group":
        options = list(field_def.options)
        index = options.index(current) if current in options else None
        st.radio(label, options=options, index=index, help=help_text, **kwargs)
    elif field_def.kind == "checkbox-group":
        st.markdown(f"**{html_mod.escape(label)}**")
        if help_text:
            st.caption(help_text)
        for i, option in enumerate(field_def.options):
            st.checkbox(
                option,
                value=option in current,
                key=f"{key}_{i}",
                on_change=_on_change,
                args=(field_def,),
            )


# -- Pending edits ------------------------------------------------------------

# Streamlit reports text widgets on blur/enter, so anything pending is
# already a committed value.
for _result in session.flush():
    _record(_result)

# -- Autosave restore ---------------------------------------------------------

if not st.session_state.autosave_decided:
    saved = draft_store.load_autosave()
    if saved is None:
        st.session_state.autosave_decided = True
    else:
        _form_data, _timestamp = saved
        st.info(f"Found saved form data from {_timestamp or 'an unknown time'}. Would you like to restore it?")
        restore_cols = st.columns(2)
        with restore_cols[0]:
            if st.button("Restore", use_container_width=True, type="primary"):
                _record(session.restore(_form_data))
                _forget_widgets()
                st.session_state.autosave_decided = True
                st.rerun()
        with restore_cols[1]:
            if st.button("Discard", use_container_width=True):
                draft_store.clear_autosave()
                st.session_state.autosave_decided = True
                st.rerun()

# -- Sidebar ------------------------------------------------------------------

with st.sidebar:
    st.markdown("#### Project profile")
    st.markdown(
        f'<div class="classification">'
        f'<strong>Complexity:</strong> {html_mod.escape(session.state.complexity.title())}<br>'
        f'<strong>Project type:</strong> {html_mod.escape(session.state.project_type.title())}'
        f'</div>',
        unsafe_allow_html=True,
    )

    st.divider()

    st.markdown("#### Progress")
    completion = calculate_completion(session)
    pct = completion["completion_pct"]
    st.markdown(
        f'<div class="progress-bar"><div class="progress-fill" style="width:{pct}%"></div></div>',
        unsafe_allow_html=True,
    )
    st.caption(
        f"{pct}% complete ({completion['completed_fields']}/{completion['total_fields']} fields, "
        f"{completion['completed_required']}/{completion['total_required']} required)"
    )

    st.divider()

    st.markdown("#### Sections")
    btn_cols = st.columns(2)
    with btn_cols[0]:
        if st.button("Expand All", use_container_width=True):
            draft_store.save_collapsed_sections([])
            st.rerun()
    with btn_cols[1]:
        if st.button("Collapse All", use_container_width=True):
            draft_store.save_collapsed_sections(list(section_ids.values()))
            st.rerun()

    collapsed = _collapsed()
    visible_titles = [t for t in section_titles if session.sections.get(t)]
    open_titles = st.multiselect(
        "Open sections",
        options=visible_titles,
        default=[t for t in visible_titles if section_ids[t] not in collapsed],
        label_visibility="collapsed",
    )
    new_collapsed = [
        section_ids[t] for t in section_titles
        if t not in open_titles and (t in visible_titles or section_ids[t] in collapsed)
    ]
    if sorted(new_collapsed) != sorted(collapsed):
        draft_store.save_collapsed_sections(new_collapsed)
        collapsed = new_collapsed

    st.divider()

    submit_clicked = st.button("Submit Problem Statement", use_container_width=True, type="primary")
    if st.button("Start Over", use_container_width=True):
        session.reset()
        draft_store.clear_all()
        _forget_widgets()
        st.session_state.submit_result = None
        st.rerun()

    pending = draft_store.load_outbox()
    if pending:
        st.caption(f"{len(pending)} submission(s) saved locally.")
        for entry in pending:
            if entry.get("status") == "rejected":
                labels = [
                    session.catalog.get(fid).label if session.catalog.get(fid) else fid
                    for fid in entry.get("missingFields", [])
                ]
                st.warning(
                    f"Saved submission {entry.get('submissionId', '')} was rejected. "
                    f"Missing: {', '.join(labels)}"
                )
        if st.button("Retry Saved Submissions", use_container_width=True):
            retried = st.session_state.client.resubmit_pending()
            sent = sum(1 for r in retried if r.status == "submitted")
            st.toast(f"Sent {sent} of {len(pending)} saved submission(s)")
            st.rerun()

    if st.session_state.last_saved_msg:
        st.markdown(
            f'<div class="saved-toast">{html_mod.escape(st.session_state.last_saved_msg)}</div>',
            unsafe_allow_html=True,
        )

# -- Handle submit ------------------------------------------------------------

if submit_clicked:
    with st.spinner("Submitting..."):
        result = st.session_state.client.submit(session.visible_values())
    if result.status == "saved_locally":
        log_action("submission_saved_locally", result.submission_id)
    st.session_state.submit_result = result
    if result.ok:
        session.reset()
        _forget_widgets()
        st.session_state.last_saved_msg = ""

# -- Main area ----------------------------------------------------------------

result = st.session_state.submit_result
if result is not None:
    if result.status == "submitted":
        st.success(
            f"Submission successful! Your problem statement has been received. "
            f"Reference ID: {result.submission_id}"
        )
    elif result.status == "saved_locally":
        st.success(
            f"Submission saved locally. It will be submitted when the server is available. "
            f"Reference ID: {result.submission_id}"
        )
    elif result.status == "rejected":
        labels = [
            session.catalog.get(fid).label if session.catalog.get(fid) else fid
            for fid in result.missing_fields
        ]
        st.error(f"Submission failed. Please complete: {', '.join(labels)}")
    elif result.status == "failed":
        st.error(f"Submission failed: {result.error} Please check your form and try again.")

for title in section_titles:
    if not session.sections.get(title):
        continue
    with st.expander(title, expanded=section_ids[title] not in collapsed):
        for field_def in session.catalog.get_fields_by_section()[title]:
            if session.is_visible(field_def.field_id):
                _render_field(field_def)
        if "ai-assisted" in title.lower():
            st.markdown(
                '<div class="ai-note"><strong>AI Processing Note:</strong> This section will be '
                "enhanced by our AI algorithm to suggest additional relevant skills based on your "
                "problem description.</div>",
                unsafe_allow_html=True,
            )

# -- Autosave -----------------------------------------------------------------

# nothing is autosaved while the restore prompt is open
_answers = {k: v for k, v in session.values.items() if v}
if st.session_state.autosave_decided and _answers and _answers != st.session_state.get("_last_autosave"):
    _ts = draft_store.save_autosave(_answers)
    st.session_state._last_autosave = _answers
    st.session_state.last_saved_msg = f"All changes saved ({_ts[11:19]} UTC)"
