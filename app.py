import streamlit as st
import streamlit.components.v1 as components
import os
import re
import json
import datetime
import logging
import matplotlib.pyplot as plt

from pile_calculations import (
    calculate_pile_metrics,
    format_area,
    format_length,
    format_weight,
    geometry_warnings,
)
from pile_groups import GROUP_FIELDS, PileGroupStore
from pile_report import build_report_html, draw_pile_section, summary_csv, summary_dataframe

logger = logging.getLogger("tubular_piles")


# --- Logging ---
def resolve_log_level(name):
    """Numeric level for a level name; unknown names fall back to INFO."""
    level = logging.getLevelName(str(name).strip().upper())
    if isinstance(level, int):
        return level
    return logging.INFO


def setup_logging():
    name = os.environ.get("PILE_CALC_LOG_LEVEL", "INFO")
    level = resolve_log_level(name)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if logging.getLevelName(level) != name.strip().upper():
        logger.warning("Unknown PILE_CALC_LOG_LEVEL %r, using INFO", name)


setup_logging()


# --- Load Custom CSS ---
def local_css(file_name):
    if os.path.exists(file_name):
        with open(file_name) as f:
            st.markdown(f'<style>{f.read()}</style>', unsafe_allow_html=True)


# --- Header Section ---
def render_header():
    st.markdown("""
        <div class="main-header">
            <h1>Tubular Piles Calculator</h1>
            <p>Calculate weight and painting area of tubular piles</p>
        </div>
    """, unsafe_allow_html=True)


# Markdown and LaTeX control characters in user text
_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!|$~<>])")


def escape_markdown(text):
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(text))


# --- Session State ---
PROJECT_DEFAULTS = {
    "project_title": "New Project",
    "project_number": "TP-2024-001",
    "designer": "Engineer",
}

NUMERIC_FIELDS = [k for k in GROUP_FIELDS if k != 'group_name']


def log_store_event(event, group):
    if group is None:
        logger.info("Pile groups %s", event)
    else:
        logger.info("Pile group %s: %s (%s)", event, group['group_name'], group['id'])


def init_session_state():
    """Initialize all session state defaults."""
    for key, val in PROJECT_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = val
    for key in GROUP_FIELDS:
        if key not in st.session_state:
            st.session_state[key] = None
    if "editing_id" not in st.session_state:
        st.session_state.editing_id = None
    if "pile_groups" not in st.session_state:
        store = PileGroupStore()
        store.subscribe(log_store_event)
        st.session_state.pile_groups = store


# --- Form Callbacks ---
def read_form():
    return {k: st.session_state.get(k) for k in GROUP_FIELDS}


def missing_fields(values):
    missing = [k for k in NUMERIC_FIELDS if values.get(k) is None]
    name = values.get('group_name')
    if name is None or not str(name).strip():
        missing.insert(0, 'group_name')
    return missing


def reset_form():
    for key in GROUP_FIELDS:
        st.session_state[key] = None


def submit_group():
    values = read_form()
    missing = missing_fields(values)
    if missing:
        labels = ", ".join(m.replace('_', ' ') for m in missing)
        st.session_state.form_error = f"Please fill in all fields: {labels}"
        return

    store = st.session_state.pile_groups
    editing_id = st.session_state.editing_id
    if editing_id:
        if store.update(editing_id, values):
            st.session_state.form_notice = f"Updated pile group '{escape_markdown(values['group_name'])}'"
        else:
            st.session_state.form_error = "The pile group being edited no longer exists."
        st.session_state.editing_id = None
    else:
        store.add(values)
        st.session_state.form_notice = f"Added pile group '{escape_markdown(values['group_name'])}'"
    reset_form()


def start_edit(group_id):
    group = st.session_state.pile_groups.get(group_id)
    if group is None:
        return
    st.session_state.editing_id = group_id
    for key in GROUP_FIELDS:
        st.session_state[key] = group[key]


def cancel_edit():
    st.session_state.editing_id = None
    reset_form()


def delete_group(group_id):
    st.session_state.pile_groups.remove(group_id)
    if st.session_state.editing_id == group_id:
        cancel_edit()


def new_project():
    st.session_state.pile_groups.clear()
    cancel_edit()


# --- Project File ---
def project_details():
    return {k: st.session_state.get(k) for k in list(PROJECT_DEFAULTS) + ["design_date"]}


def save_state():
    """Serialize project details and pile groups to JSON string."""
    state_data = project_details()
    state_data["groups"] = st.session_state.pile_groups.to_records()

    # Custom serializer for date objects
    def json_serial(obj):
        if isinstance(obj, (datetime.date, datetime.datetime)):
            return obj.isoformat()
        raise TypeError(f"Type {type(obj)} not serializable")

    return json.dumps(state_data, default=json_serial, indent=2)


def load_state(uploaded_file):
    """Load state from JSON file."""
    if uploaded_file is None:
        return
    try:
        uploaded_file.seek(0)
        data = json.load(uploaded_file)
        # Validate groups before touching session state
        records = PileGroupStore(data.get("groups", [])).to_records()
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning("Project load failed: %s", e)
        st.session_state.load_error = f"Load failed: {e}"
        return

    for k in PROJECT_DEFAULTS:
        if k in data:
            st.session_state[k] = str(data[k])
    if isinstance(data.get("design_date"), str):
        try:
            st.session_state.design_date = datetime.date.fromisoformat(data["design_date"])
        except ValueError:
            logger.warning("Ignoring invalid design date %r", data["design_date"])

    st.session_state.pile_groups.load_records(records)
    cancel_edit()
    logger.info("Loaded project with %d pile groups", len(records))


# --- Application Layout ---
def render_sidebar():
    with st.sidebar:
        # App Logo
        st.markdown("""
            <div style="text-align: center; margin-bottom: 20px;">
                <h1 style="color: #0066cc; font-size: 28px; margin: 0; font-weight: 800;">C&S <span style="font-weight: 300;">Calc Pro</span></h1>
                <p style="font-size: 12px; color: #666; margin-top: 5px;">Structural Design Suite</p>
            </div>
            <hr style="margin-top: 0; margin-bottom: 20px;">
        """, unsafe_allow_html=True)

        st.header("Project Details")
        st.text_input("Project Title", key="project_title")
        st.text_input("Project Number", key="project_number")
        st.text_input("Designer", key="designer")
        st.date_input("Date", key="design_date")

        st.markdown("---")
        st.header("File Operations")
        st.download_button("💾 Save Project", save_state(), "tubular_piles_project.json", "application/json")

        uploaded_file = st.file_uploader("📂 Load Project", type=["json"])
        if uploaded_file is not None:
            st.button("Confirm Load", on_click=load_state, args=(uploaded_file,))
        load_error = st.session_state.pop("load_error", None)
        if load_error:
            st.error(load_error)

        st.button("🧹 New Project", on_click=new_project, key="new_project", help="Remove all pile groups")


def render_input_panel():
    store = st.session_state.pile_groups
    editing_id = st.session_state.editing_id

    st.subheader("Pile Group Details")
    st.caption("Enter the specifications for your pile group")
    if editing_id:
        group = store.get(editing_id)
        if group is not None:
            st.info(f"Editing pile group: {escape_markdown(group['group_name'])}")

    st.text_input("Group Name", value=None, key="group_name", placeholder="Enter group name")
    st.number_input("Number of Piles", min_value=1, step=1, value=None, key="pile_count",
                    placeholder="Enter number of piles")
    c1, c2 = st.columns(2)
    with c1:
        st.number_input("Outer Diameter (mm)", min_value=0.0, step=0.1, value=None, key="outer_diameter",
                        placeholder="Enter outer diameter")
        st.number_input("Pile Length (m)", min_value=0.0, step=0.1, value=None, key="pile_length",
                        placeholder="Enter pile length")
    with c2:
        st.number_input("Wall Thickness (mm)", min_value=0.0, step=0.1, value=None, key="wall_thickness",
                        placeholder="Enter wall thickness")
        st.number_input("Paint Length (m)", min_value=0.0, step=0.1, value=None, key="paint_length",
                        placeholder="0 if no painting required")

    form_error = st.session_state.pop("form_error", None)
    if form_error:
        st.error(form_error)
    form_notice = st.session_state.pop("form_notice", None)
    if form_notice:
        st.success(form_notice)

    b1, b2 = st.columns(2)
    if editing_id:
        b1.button("Cancel", on_click=cancel_edit, key="cancel_edit")
    b2.button(
        "Update Pile Group" if editing_id else "Add Pile Group",
        on_click=submit_group,
        key="submit_group",
        type="primary",
    )


def render_live_calculations():
    st.subheader("Live Calculations")
    st.caption("Real-time calculation results")

    values = read_form()
    numeric = {k: values[k] for k in NUMERIC_FIELDS}
    ready = all(v is not None for v in numeric.values())
    if ready:
        calc = calculate_pile_metrics(
            numeric['outer_diameter'], numeric['wall_thickness'],
            numeric['pile_length'], numeric['paint_length'], numeric['pile_count'],
        )
    else:
        calc = {k: 0.0 for k in ('inner_diameter', 'cross_section_area', 'single_pile_weight', 'paint_area_per_pile')}

    st.markdown('<div class="css-card">', unsafe_allow_html=True)
    m1, m2 = st.columns(2)
    m1.metric("Inner Diameter", f"{format_length(calc['inner_diameter'])} mm")
    m2.metric("Cross Section Area", f"{calc['cross_section_area']:.2f} mm²")
    m3, m4 = st.columns(2)
    m3.metric("Single Pile Weight", f"{format_weight(calc['single_pile_weight'])} tons")
    m4.metric("Paint Area per Pile", f"{format_area(calc['paint_area_per_pile'])} m²")
    st.markdown('</div>', unsafe_allow_html=True)

    if ready:
        for w in geometry_warnings(**numeric):
            st.warning(w)
        fig = draw_pile_section(numeric['outer_diameter'], numeric['wall_thickness'])
        st.pyplot(fig)
        plt.close(fig)


def render_groups_summary():
    store = st.session_state.pile_groups

    st.write("### Pile Groups Summary")
    if len(store) == 0:
        st.info("No pile groups added")
    else:
        st.dataframe(summary_dataframe(store), hide_index=True)

        st.markdown("##### Manage Groups")
        for g in store.summary():
            c1, c2, c3 = st.columns([4, 1, 1])
            c1.markdown(
                f"**{escape_markdown(g['group_name'])}**: {g['pile_count']} × Ø{g['outer_diameter']:g} x {g['wall_thickness']:g} mm, "
                f"{format_weight(g['total_weight'])} t, {format_area(g['total_paint_area'])} m²"
            )
            c2.button("✏️ Edit", key=f"edit_{g['id']}", on_click=start_edit, args=(g['id'],),
                      help="Edit pile group")
            c3.button("🗑️ Delete", key=f"delete_{g['id']}", on_click=delete_group, args=(g['id'],),
                      help="Remove pile group")

    st.markdown("---")
    st.write("### Project Totals")
    totals = store.totals()
    t1, t2 = st.columns(2)
    t1.metric("Total Weight", f"{format_weight(totals['total_weight'])} tons")
    t2.metric("Total Paint Area", f"{format_area(totals['total_paint_area'])} m²")


def render_report():
    store = st.session_state.pile_groups

    st.markdown("### Detailed Calculation Report")
    report_html = build_report_html(store, project_details())

    st.info("Report generated in A4 format. Click below to download.")
    d1, d2 = st.columns(2)
    d1.download_button("📥 Download Report (HTML)", report_html, "tubular_piles_report.html", "text/html")
    d2.download_button("📥 Download Summary (CSV)", summary_csv(store), "tubular_piles_summary.csv", "text/csv")

    with st.expander("📄 Preview Report Content"):
        components.html(report_html, height=600, scrolling=True)


def main():
    # --- Page Config ---
    st.set_page_config(
        page_title="Tubular Piles Calculator",
        page_icon="🏗️",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    local_css(os.path.join("assets", "style.css"))
    render_header()

    init_session_state()
    render_sidebar()

    col1, col2 = st.columns(2)
    with col1:
        render_input_panel()
    with col2:
        render_live_calculations()

    tabs = st.tabs(["Pile Groups", "Detailed Report"])
    with tabs[0]:
        render_groups_summary()
    with tabs[1]:
        render_report()


if __name__ == "__main__":
    main()
