"""Streamlit application for the Risk Dashboard."""

from datetime import date

import streamlit as st

from risk_dashboard.config import get_settings

st.set_page_config(
    page_title=get_settings().ui.page_title,
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="collapsed",
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.2rem;
        font-weight: 700;
        color: #1f2937;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        font-size: 1.0rem;
        color: #6b7280;
        margin-bottom: 1.5rem;
    }
    .tier-card {
        padding: 1rem;
        border-radius: 0.5rem;
        text-align: center;
        font-weight: 600;
    }
    .tier-card .count {
        font-size: 1.8rem;
        display: block;
    }
    .stTabs [data-baseweb="tab-list"] {
        gap: 2rem;
    }
</style>
""", unsafe_allow_html=True)

REGISTER_KEY = "risk_register"

FORM_FIELDS = (
    "description",
    "probability",
    "impact",
    "effectiveness",
    "owner",
    "category",
    "form_status",
    "notes",
    "comments",
    "has_completion",
    "completion",
)


def init_session():
    """Set up logging and the session's risk register on first run."""
    from risk_dashboard.logging import generate_session_id, get_logger, set_session_id, setup_logging
    from risk_dashboard.storage import RiskRegister, load_sample_register

    if "session_id" not in st.session_state:
        setup_logging()
        st.session_state.session_id = generate_session_id()

    set_session_id(st.session_state.session_id)

    if REGISTER_KEY not in st.session_state:
        settings = get_settings()
        if settings.register.load_sample_data:
            register = load_sample_register(id_prefix=settings.register.id_prefix)
        else:
            register = RiskRegister(id_prefix=settings.register.id_prefix)
        st.session_state[REGISTER_KEY] = register
        get_logger(__name__).info("session_started", risk_count=len(register))

    st.session_state.setdefault("show_form", False)
    st.session_state.setdefault("editing_id", None)
    st.session_state.setdefault("show_import", False)


def clear_form_state(state, key: str) -> None:
    """Drop a form's widget values so it reopens with its defaults."""
    for field in FORM_FIELDS:
        state.pop(f"{field}_{key}", None)


def get_register():
    """Return the session's current register."""
    return st.session_state[REGISTER_KEY]


def set_register(register) -> None:
    """Replace the session's register wholesale."""
    st.session_state[REGISTER_KEY] = register


def main():
    """Main Streamlit application."""
    init_session()

    col1, col2, col3 = st.columns([4, 1, 1])

    with col1:
        st.markdown(f'<p class="main-header">{get_settings().ui.page_title}</p>', unsafe_allow_html=True)
        st.markdown(
            f'<p class="sub-header">Last updated: {date.today().strftime("%d %b %Y")}</p>',
            unsafe_allow_html=True,
        )

    with col2:
        if st.button("📤 Import", use_container_width=True):
            st.session_state.show_import = True
            st.session_state.show_form = False

    with col3:
        if st.button("➕ Add Risk", type="primary", use_container_width=True):
            st.session_state.show_form = True
            st.session_state.editing_id = None
            st.session_state.show_import = False

    if st.session_state.show_form:
        show_risk_form()

    if st.session_state.show_import:
        show_import()

    summary_tab, table_tab = st.tabs(["Dashboard Summary", "Risk Table"])

    with summary_tab:
        show_summary()

    with table_tab:
        show_table()


def show_summary():
    """Show tier and status counts for the register."""
    import pandas as pd
    import plotly.express as px

    from risk_dashboard.scoring import RISK_LEVELS

    register = get_register()
    summary = register.summary()
    precision = get_settings().ui.residual_precision

    if summary.total == 0:
        st.info("No risks yet. Add a risk or import a spreadsheet to get started.")
        return

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Total Risks", summary.total)

    with col2:
        st.metric("Open", summary.by_status.get("Open", 0))

    with col3:
        avg_score = sum(r.score for r in register) / summary.total
        st.metric("Average Score", f"{avg_score:.{precision}f}")

    with col4:
        avg_residual = sum(r.residual_score for r in register) / summary.total
        st.metric(
            "Average Residual",
            f"{avg_residual:.{precision}f}",
            delta=f"{avg_residual - avg_score:.{precision}f}",
            delta_color="inverse",
        )

    st.markdown("---")
    st.subheader("By Risk Level")

    columns = st.columns(len(RISK_LEVELS))
    for column, level in zip(columns, reversed(RISK_LEVELS)):
        with column:
            st.markdown(
                f"""
                <div class="tier-card" style="background-color: {level.color}; color: {level.text_color};">
                    <span class="count">{summary.by_level.get(level.name, 0)}</span>
                    {level.name}
                </div>
                """,
                unsafe_allow_html=True,
            )

    st.markdown("")

    col1, col2 = st.columns(2)

    with col1:
        residual_counts = {level.name: 0 for level in RISK_LEVELS}
        for risk in register:
            residual_counts[risk.residual_risk_level] = residual_counts.get(risk.residual_risk_level, 0) + 1

        chart_rows = []
        for level in RISK_LEVELS:
            chart_rows.append({"Tier": level.name, "Kind": "Inherent", "Risks": summary.by_level.get(level.name, 0)})
            chart_rows.append({"Tier": level.name, "Kind": "Residual", "Risks": residual_counts[level.name]})

        fig = px.bar(
            pd.DataFrame(chart_rows),
            x="Tier",
            y="Risks",
            color="Kind",
            barmode="group",
            title="Inherent vs Residual Risk",
            color_discrete_map={"Inherent": "#dc2626", "Residual": "#16a34a"},
        )
        st.plotly_chart(fig, use_container_width=True)

    with col2:
        status_rows = [{"Status": s, "Risks": c} for s, c in summary.by_status.items()]
        fig = px.pie(pd.DataFrame(status_rows), names="Status", values="Risks", title="By Status", hole=0.4)
        st.plotly_chart(fig, use_container_width=True)


def show_table():
    """Show the risk table with filters and per-risk actions."""
    from risk_dashboard.ingestion.schemas import RiskStatus
    from risk_dashboard.scoring import LEVEL_NAMES
    from risk_dashboard.storage import to_dataframe

    register = get_register()

    if len(register) == 0:
        st.info("No risks to show.")
        return

    col1, col2, col3 = st.columns(3)

    with col1:
        level_filter = st.multiselect("Risk Level", options=list(LEVEL_NAMES), default=list(LEVEL_NAMES))

    with col2:
        statuses = [s.value for s in RiskStatus]
        status_filter = st.multiselect("Status", options=statuses, default=statuses)

    with col3:
        sort_by = st.selectbox("Sort By", options=["score", "residual_score", "updated_at"], index=0)

    risks = [
        r for r in register
        if r.risk_level in level_filter and r.status.value in status_filter
    ]
    risks.sort(key=lambda r: getattr(r, sort_by), reverse=True)

    df = to_dataframe(risks, headers=True)
    st.dataframe(
        df,
        use_container_width=True,
        hide_index=True,
        column_config={
            "Mitigation Effectiveness": st.column_config.NumberColumn(format="%.2f"),
            "Residual Score": st.column_config.NumberColumn(format=f"%.{get_settings().ui.residual_precision}f"),
        },
    )

    st.download_button(
        "📥 Download CSV",
        data=to_dataframe(register, headers=True).to_csv(index=False).encode("utf-8"),
        file_name="risks.csv",
        mime="text/csv",
    )

    st.markdown("---")
    st.subheader("Manage Risk")

    options = {f"{r.description[:60]} ({r.id})": r.id for r in risks}
    if not options:
        st.caption("No risks match the current filters.")
        return

    selected = st.selectbox("Risk", options=list(options.keys()))
    risk_id = options[selected]
    risk = register.get(risk_id)

    col1, col2, col3 = st.columns([2, 1, 1])

    with col1:
        statuses = [s.value for s in RiskStatus]
        new_status = st.selectbox(
            "Status",
            options=statuses,
            index=statuses.index(risk.status.value),
            key=f"status_{risk_id}",
        )
        if new_status != risk.status.value:
            set_register(register.update_status(risk_id, new_status))
            st.rerun()

    with col2:
        if st.button("✏️ Edit", use_container_width=True):
            st.session_state.show_form = True
            st.session_state.editing_id = risk_id
            st.session_state.show_import = False
            st.rerun()

    with col3:
        if st.button("🗑️ Delete", use_container_width=True):
            set_register(register.delete(risk_id))
            st.success("Risk deleted.")
            st.rerun()


def show_risk_form():
    """Show the add/edit risk form with a live score preview."""
    from risk_dashboard.ingestion.schemas import RiskInput, RiskStatus
    from risk_dashboard.scoring import build_risk_item, compute_metrics, validate_risk_input

    register = get_register()
    editing_id = st.session_state.editing_id
    existing = register.get(editing_id) if editing_id and editing_id in register else None
    key = editing_id or "new"
    precision = get_settings().ui.residual_precision

    with st.container(border=True):
        st.subheader("Edit Risk" if existing else "Add Risk")

        description = st.text_area(
            "Description *",
            value=existing.description if existing else "",
            key=f"description_{key}",
        )

        col1, col2, col3 = st.columns(3)

        with col1:
            probability = st.slider(
                "Probability", 1, 9,
                value=existing.probability if existing else 5,
                key=f"probability_{key}",
            )

        with col2:
            impact = st.slider(
                "Impact", 1, 9,
                value=existing.impact if existing else 5,
                key=f"impact_{key}",
            )

        with col3:
            effectiveness_pct = st.slider(
                "Mitigation Effectiveness (%)", 0, 100,
                value=int(round(existing.mitigation_effectiveness * 100)) if existing else 0,
                key=f"effectiveness_{key}",
            )

        metrics = compute_metrics(probability, impact, effectiveness_pct / 100)
        st.markdown(
            f"**Score:** {metrics.score} ({metrics.risk_level}) &nbsp;→&nbsp; "
            f"**Residual:** {metrics.residual_score:.{precision}f} ({metrics.residual_risk_level})"
        )

        col1, col2, col3 = st.columns(3)

        with col1:
            owner = st.text_input("Owner", value=(existing.owner or "") if existing else "", key=f"owner_{key}")

        with col2:
            category = st.text_input(
                "Category", value=(existing.category or "") if existing else "", key=f"category_{key}"
            )

        with col3:
            statuses = [s.value for s in RiskStatus]
            status = st.selectbox(
                "Status",
                options=statuses,
                index=statuses.index(existing.status.value) if existing else 0,
                key=f"form_status_{key}",
            )

        notes = st.text_area("Mitigation Notes", value=(existing.notes or "") if existing else "", key=f"notes_{key}")
        comments = st.text_area(
            "Comments / Lessons Learned",
            value=(existing.comments or "") if existing else "",
            key=f"comments_{key}",
        )

        has_completion = st.checkbox(
            "Completed",
            value=bool(existing and existing.completion_date),
            key=f"has_completion_{key}",
        )
        completion_date = None
        if has_completion:
            completion_date = st.date_input(
                "Completion Date",
                value=(existing.completion_date if existing and existing.completion_date else date.today()),
                key=f"completion_{key}",
            )

        col1, col2, _ = st.columns([1, 1, 4])

        with col1:
            save = st.button("💾 Save", type="primary", use_container_width=True, key=f"save_{key}")

        with col2:
            cancel = st.button("Cancel", use_container_width=True, key=f"cancel_{key}")

        if cancel:
            clear_form_state(st.session_state, key)
            st.session_state.show_form = False
            st.session_state.editing_id = None
            st.rerun()

        if save:
            raw = RiskInput(
                description=description.strip(),
                probability=probability,
                impact=impact,
                mitigation_effectiveness=effectiveness_pct / 100,
                owner=owner,
                category=category,
                status=RiskStatus(status),
                notes=notes,
                comments=comments,
                completion_date=completion_date,
            )

            violations = validate_risk_input(raw)
            if violations:
                for message in violations:
                    st.error(message)
                return

            draft = build_risk_item(raw)
            if existing:
                set_register(register.replace(existing.id, draft))
            else:
                set_register(register.add(draft))

            clear_form_state(st.session_state, key)
            st.session_state.show_form = False
            st.session_state.editing_id = None
            st.rerun()


def show_import():
    """Show the spreadsheet import panel."""
    from risk_dashboard.ingestion.importer import import_upload

    with st.container(border=True):
        st.subheader("Import Risks")
        st.caption(
            "Columns: Description, Probability, Impact, Mitigation Effectiveness, "
            "Owner, Category, Status, Notes. Ratings are 1-9; effectiveness is 0-1 or a percentage."
        )

        uploaded_file = st.file_uploader(
            "Upload risk register",
            type=["xlsx", "xls", "csv", "json", "jsonl"],
        )

        col1, col2, _ = st.columns([1, 1, 4])

        with col1:
            run_import = st.button("Import", type="primary", use_container_width=True, disabled=uploaded_file is None)

        with col2:
            if st.button("Close", use_container_width=True):
                st.session_state.show_import = False
                st.rerun()

        if run_import and uploaded_file is not None:
            try:
                result = import_upload(uploaded_file.getvalue(), uploaded_file.name)
            except Exception as e:
                st.error(f"Could not read {uploaded_file.name}: {e}")
                return

            if result.risks:
                set_register(get_register().add_many(result.risks))
                st.success(f"✅ Imported {len(result.risks)} of {result.rows_read} rows.")
            else:
                st.error("No risks were imported.")

            if result.errors:
                with st.expander(f"⚠️ {len(result.errors)} problems", expanded=not result.risks):
                    for error in result.errors:
                        st.markdown(f"- {error}")


if __name__ == "__main__":
    main()
