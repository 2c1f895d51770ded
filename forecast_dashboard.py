"""
Forecast Dashboard - Monthly Forecast Reconciliation
Reads the forecast org's REST endpoints and displays the forecast month, version history,
forward pipeline, previous-month recap, pipeline math and pipeline reconciliation
Admins can advance the forecast month and drive the simulation from the sidebar
"""

import logging
import os
from datetime import datetime

import streamlit as st
import plotly.graph_objects as go
import plotly.io as pio

from forecast_api import ForecastApiClient, ForecastApiConfig
from forecast_errors import ConfigurationError, ForecastError
from forecast_formatting import DELTA_ERROR, DELTA_SUCCESS, format_currency
from forecast_models import AnnualRevenue
from forecast_session import POLL_INTERVAL_SECONDS, ForecastSession, PeriodView, PipelineMathView
from forecast_views import (
    annual_month_rows,
    build_pipeline_math,
    build_recap,
    build_reconciliation,
    change_rows,
    changes_toggle_label,
    delta_rows,
    forward_month_rows,
    formatted_current_month,
    has_annual_data,
    quarter_rows,
    rows_frame,
    version_rows,
)
from schedule_grid import ScheduleEditor, schedule_rows

logger = logging.getLogger(__name__)

# Configure Plotly for dark mode compatibility
pio.templates.default = "plotly"

# Page configuration
st.set_page_config(
    page_title="Forecast Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for styling - Dark Mode Compatible
st.markdown("""
    <style>
    [data-testid="stMetric"] {
        background: linear-gradient(135deg, rgba(255, 255, 255, 0.08) 0%, rgba(255, 255, 255, 0.02) 100%);
        padding: 16px;
        border-radius: 16px;
        border: 1px solid rgba(255, 255, 255, 0.1);
        box-shadow: 0 8px 32px 0 rgba(0, 0, 0, 0.15);
    }

    [data-testid="stMetricLabel"] {
        font-size: 0.85rem !important;
        font-weight: 600 !important;
        text-transform: uppercase;
        letter-spacing: 0.5px;
        opacity: 0.7;
    }

    .section-header {
        font-size: 1.3rem;
        font-weight: 700;
        margin: 20px 0 10px 0;
        padding-bottom: 6px;
        border-bottom: 2px solid rgba(59, 130, 246, 0.4);
    }

    .delta-value { font-size: 0.95rem; font-weight: 600; }
    .status-badge {
        display: inline-block;
        padding: 4px 12px;
        border-radius: 12px;
        font-weight: 600;
        color: white;
    }
    </style>
    """, unsafe_allow_html=True)

# Cache duration - 1 hour
CACHE_TTL = 3600

# Add a version number to force cache refresh when code changes
CACHE_VERSION = "v1_forecast_months"

YEAR_OPTIONS = [2025, 2026, 2027, 2028]
FORECAST_REPORT_PATH = "/lightning/r/Report/00ORL000007vufl2AA/view"

# Text colors for view-model classes
CLASS_COLORS = {
    DELTA_SUCCESS: "#10b981",
    DELTA_ERROR: "#ef4444",
    "positive": "#10b981",
    "negative": "#ef4444",
    "weak": "#94a3b8",
    "neutral": "inherit",
}

BADGE_COLORS = {
    "success": "#10b981",
    "warning": "#f59e0b",
}


def configure_logging():
    """Root logging setup; level from FORECAST_LOG_LEVEL (default INFO)"""
    level_name = os.environ.get("FORECAST_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ==========================================
# CONNECTION & SESSION STATE
# ==========================================

def load_api_config():
    """Read the Salesforce connection settings from Streamlit secrets"""
    try:
        if "salesforce" not in st.secrets:
            st.error("❌ Missing Salesforce connection settings in Streamlit secrets")
            return None
        return ForecastApiConfig.from_mapping(dict(st.secrets["salesforce"]))
    except FileNotFoundError:
        st.error("❌ No Streamlit secrets file found")
        return None
    except ConfigurationError as e:
        st.error(f"❌ {e}")
        return None


def get_forecast_state(config):
    """One API client, session and set of period views per browser session"""
    if 'forecast_session' not in st.session_state:
        api = ForecastApiClient(config)
        session = ForecastSession(api, after_mutation=st.cache_data.clear)
        views = {
            'recap': PeriodView('Opportunity Recap', api.get_current_forecast_month, api.get_opportunity_recap),
            'math': PipelineMathView('Pipeline Math', api.get_current_forecast_month, api.get_pipeline_math),
            'reconciliation': PeriodView(
                'Pipeline Reconciliation', api.get_current_forecast_month, api.get_pipeline_reconciliation
            ),
        }

        with st.spinner("Loading forecast data..."):
            session.load()
            for view in views.values():
                view.check_month()

        st.session_state.forecast_session = session
        st.session_state.forecast_views = views

    return st.session_state.forecast_session, st.session_state.forecast_views


def reset_forecast_state():
    """Tear down the current session so the next run starts fresh"""
    session = st.session_state.pop('forecast_session', None)
    if session is not None:
        session.close()
    st.session_state.pop('forecast_views', None)
    st.session_state.pop('schedule_editor', None)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def load_annual_revenue(_api, year, version=CACHE_VERSION):
    """Annual revenue is read-only between admin actions, so it is cached"""
    return _api.get_annual_revenue_data(year)


def show_toast(toast):
    """Render a toast now and keep it for the rerun that follows an action"""
    if toast is None:
        return
    render = {
        'success': st.success,
        'error': st.error,
        'warning': st.warning,
    }.get(toast.variant, st.info)
    render(f"**{toast.title}:** {toast.message}")


def run_action(session, views, action):
    """Run an admin action, re-check the analysis-month views, and rerun"""
    with st.spinner("Processing..."):
        toast = action()
        if toast.variant == 'success':
            for view in views.values():
                view.check_month()
    st.session_state.last_toast = toast
    st.rerun()


def colored(text, css_class):
    color = CLASS_COLORS.get(css_class, "inherit")
    return f"<span class='delta-value' style='color: {color}'>{text}</span>"


def status_badge(status, variant):
    color = BADGE_COLORS.get(variant, "#64748b")
    icon = "✅" if variant == "success" else "⚠️"
    return f"<span class='status-badge' style='background: {color}'>{icon} {status}</span>"


# ==========================================
# CHARTS
# ==========================================

def create_version_history_chart(versions):
    """Forecast amount across the six monthly snapshots, oldest on the left"""
    ordered = list(reversed(versions))
    fig = go.Figure(go.Scatter(
        x=[row['label'] for row in ordered],
        y=[row['amount'] for row in ordered],
        mode='lines+markers+text',
        text=[row['formatted'] for row in ordered],
        textposition='top center',
        line=dict(color='#3b82f6', width=3),
        marker=dict(size=10)
    ))
    fig.update_layout(
        title="Forecast Version History",
        height=320,
        yaxis_title="Amount ($)",
        plot_bgcolor='rgba(0,0,0,0)',
        paper_bgcolor='rgba(0,0,0,0)',
        margin=dict(l=60, r=30, t=60, b=40)
    )
    return fig


def create_monthly_bar_chart(rows, title, color):
    """Bar per month; rows come from forward_month_rows/annual_month_rows"""
    fig = go.Figure(go.Bar(
        x=[row['short_label'] for row in rows],
        y=[row['amount'] for row in rows],
        marker_color=color,
        text=[row['formatted'] for row in rows],
        textposition='outside',
        hovertemplate="<b>%{x}</b><br>$%{y:,.0f}<extra></extra>"
    ))
    fig.update_layout(
        title=title,
        height=360,
        yaxis_title="Amount ($)",
        plot_bgcolor='rgba(0,0,0,0)',
        paper_bgcolor='rgba(0,0,0,0)',
        yaxis=dict(gridcolor='rgba(128,128,128,0.2)'),
        margin=dict(l=60, r=30, t=60, b=40)
    )
    return fig


def create_pipeline_math_waterfall(math):
    """Previous forward 12M -> red/green/gray movements -> current forward 12M"""
    steps = [
        ('Previous 12M', math.forward_12m_previous, 'absolute'),
        ('Red', math.red_total, 'relative'),
        ('Green', math.green_total, 'relative'),
        ('Gray', math.gray_total, 'relative'),
        ('Current 12M', math.forward_12m_current, 'total'),
    ]
    fig = go.Figure(go.Waterfall(
        x=[label for label, _, _ in steps],
        y=[value for _, value, _ in steps],
        measure=[measure for _, _, measure in steps],
        text=[format_currency(value) for _, value, _ in steps],
        textposition='outside',
        increasing=dict(marker=dict(color='#43A047')),
        decreasing=dict(marker=dict(color='#DC3912')),
        totals=dict(marker=dict(color='#1E88E5')),
        connector=dict(line=dict(color='rgba(128,128,128,0.5)'))
    ))
    fig.update_layout(
        title="Forward 12 Month Bridge",
        height=420,
        yaxis_title="Amount ($)",
        plot_bgcolor='rgba(0,0,0,0)',
        paper_bgcolor='rgba(0,0,0,0)',
        showlegend=False,
        margin=dict(l=70, r=30, t=60, b=40)
    )
    return fig


# ==========================================
# HOME PAGE
# ==========================================

def display_admin_controls(session, views, key_prefix):
    """Advance month plus the simulation controls; disabled for non-admins"""
    label = 'Processing...' if session.is_loading else '⏭️ Advance to Next Month'
    if st.button(label, disabled=session.is_button_disabled, use_container_width=True,
                 key=f"{key_prefix}_advance"):
        run_action(session, views, session.advance_month)

    if not session.is_admin:
        st.caption("🔒 Admin access is required to change the forecast month")


def display_simulation_controls(session, views):
    show = st.toggle("Show Simulation Controls", key="show_simulation_controls")
    if not show:
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("🧪 Generate Simulation Data", disabled=session.is_button_disabled,
                     use_container_width=True):
            run_action(session, views, session.generate_simulation)
    with col2:
        if st.button("⏮️ Reset to January 2025", disabled=session.is_button_disabled,
                     use_container_width=True):
            run_action(session, views, session.reset_to_january)
    with col3:
        if st.button("🧹 Cleanup Simulation Data", disabled=session.is_button_disabled,
                     use_container_width=True):
            run_action(session, views, session.cleanup_simulation)


def display_version_history(session):
    st.markdown('<div class="section-header">📈 Monthly Forecast Versions</div>', unsafe_allow_html=True)

    versions = version_rows(session.dashboard)
    deltas = delta_rows(session.dashboard)

    cols = st.columns(len(versions))
    for i, (col, version) in enumerate(zip(cols, versions)):
        with col:
            st.metric(version['label'], version['formatted'])
            if i < len(deltas):
                delta = deltas[i]
                st.markdown(
                    f"{delta['label']}: " + colored(delta['formatted'], delta['class']),
                    unsafe_allow_html=True
                )

    st.plotly_chart(create_version_history_chart(versions), use_container_width=True)


def display_forward_pipeline(session):
    st.markdown('<div class="section-header">🔭 Forward Pipeline</div>', unsafe_allow_html=True)

    forward = session.dashboard.forward_pipeline
    rows = forward_month_rows(forward)
    st.metric("Total Forward Pipeline", format_currency(forward.total_forward))

    if not rows:
        st.info("📭 No forward pipeline data for the current forecast month")
        return

    st.plotly_chart(create_monthly_bar_chart(rows, "Forward Pipeline by Month", '#3b82f6'),
                    use_container_width=True)


def display_annual_revenue(session):
    st.markdown('<div class="section-header">📅 Annual Revenue</div>', unsafe_allow_html=True)

    year = st.selectbox("Year", YEAR_OPTIONS, key="annual_revenue_year")
    try:
        annual = load_annual_revenue(session.api, year)
    except ForecastError as e:
        logger.error("Error loading annual revenue data for %s: %s", year, e)
        annual = AnnualRevenue()

    if not has_annual_data(annual):
        st.info(f"📭 No revenue recorded for {year}")
        return

    st.metric(f"Total {year} Revenue", format_currency(annual.total_annual))

    quarter_cols = st.columns(4)
    for col, quarter in zip(quarter_cols, quarter_rows(annual)):
        with col:
            st.metric(quarter['label'], quarter['formatted'])

    st.plotly_chart(create_monthly_bar_chart(annual_month_rows(annual), f"{year} Revenue by Month", '#43A047'),
                    use_container_width=True)


def style_change_table(rows):
    """Color Stage and Change Type cells by their classes"""
    df = rows_frame(rows, ['Account', 'Opportunity', 'Stage', 'Amount Before', 'Amount After',
                           'Change Type', 'Reason'])
    if df.empty:
        return df

    stage_colors = [f"color: {CLASS_COLORS.get(row['stage_class'], 'inherit')}" for row in rows]
    change_colors = [f"color: {CLASS_COLORS.get(row['change_class'], 'inherit')}" for row in rows]
    return (df.style
            .apply(lambda _: stage_colors, subset=['Stage'])
            .apply(lambda _: change_colors, subset=['Change Type']))


def display_opportunity_changes(changes, key="changes"):
    rows = change_rows(changes)
    if not rows:
        st.info("ℹ️ No opportunity changes found for the last month.")
        return
    st.dataframe(style_change_table(rows), use_container_width=True, hide_index=True, key=key)


def display_home_page(session, views, config):
    """Forecast home: month, admin actions, versions, forward pipeline, annual revenue, changes"""

    st.title("🎯 Forecast Home")

    if session.error:
        st.warning(session.error)

    col1, col2 = st.columns([2, 1])
    with col1:
        st.markdown(f"### 🗓️ Current Forecast Month: {formatted_current_month(session.current_month)}")
    with col2:
        st.link_button("📄 Open Forecast Report", config.instance_url + FORECAST_REPORT_PATH,
                       use_container_width=True)

    display_admin_controls(session, views, key_prefix="home")
    display_simulation_controls(session, views)

    display_version_history(session)
    display_forward_pipeline(session)
    display_annual_revenue(session)

    st.markdown('<div class="section-header">🔄 Opportunity Changes</div>', unsafe_allow_html=True)
    expanded = st.session_state.get("show_changes_dropdown", False)
    if st.button(changes_toggle_label(session.changes, expanded), key="toggle_changes"):
        st.session_state.show_changes_dropdown = not expanded
        st.rerun()
    if expanded:
        display_opportunity_changes(session.changes, key="home_changes")


# ==========================================
# ANALYSIS MONTH VIEWS
# ==========================================

def display_recap_table(rows, columns, config, key):
    df = rows_frame(rows, columns)
    if df.empty:
        st.info("📭 Nothing to see here... yet!")
        return

    df.insert(0, '🔗 Link', [config.instance_url + row['Opportunity Url'] if row['Opportunity Url'] else ''
                             for row in rows])
    df['Amount'] = df['Amount'].apply(format_currency)
    st.dataframe(
        df,
        use_container_width=True,
        hide_index=True,
        key=key,
        column_config={
            '🔗 Link': st.column_config.LinkColumn("🔗 Link", help="Open the opportunity",
                                                   display_text="View Opp")
        }
    )


@st.fragment(run_every=POLL_INTERVAL_SECONDS)
def display_recap(view, config):
    """Re-checks the forecast month on the poll interval while the page is open"""
    # Month changes made from other sessions show up on the next tick
    view.check_month()
    recap = build_recap(view.data, view.analysis_month)

    st.title(f"📋 {recap.card_title}")
    if view.error:
        st.error(f"❌ Error loading opportunity recap: {view.error}")

    cols = st.columns(4)
    for col, (category, label) in zip(cols, [('won', '🏆 Won'), ('lost', '❌ Lost'),
                                              ('shifted', '📆 Shifted'), ('created', '✨ Created')]):
        with col:
            st.metric(f"{label} ({recap.count(category)})", recap.formatted_amount(category))

    if not recap.has_data:
        st.info(recap.no_data_message)
        return

    base = ['Opportunity Name', 'Account', 'Amount', 'Close Date']
    tab1, tab2, tab3, tab4 = st.tabs(["Won", "Lost", "Shifted", "Created"])
    with tab1:
        display_recap_table(recap.won, base + ['Owner'], config, key="recap_won")
    with tab2:
        display_recap_table(recap.lost, base + ['Reason'], config, key="recap_lost")
    with tab3:
        display_recap_table(recap.shifted, base + ['New Close Date', 'Reason'], config, key="recap_shifted")
    with tab4:
        display_recap_table(recap.created, base + ['Created Date'], config, key="recap_created")


def display_impact_bucket(title, total, rows, key):
    with st.expander(f"{title}: {total} ({len(rows)} {'item' if len(rows) == 1 else 'items'})"):
        df = rows_frame(rows)
        if df.empty:
            st.info("📭 Nothing to see here... yet!")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True, key=key)


def display_pipeline_math(view):
    include = st.toggle("Include Won Revenue", value=view.include_won_revenue, key="include_won_revenue")
    if include != view.include_won_revenue:
        with st.spinner("Recalculating..."):
            view.set_include_won_revenue(include)

    math = build_pipeline_math(view.data, view.include_won_revenue)
    st.title(f"🧮 {math['title']}")

    if view.error:
        st.error(f"❌ Error loading pipeline math: {view.error}")
    if not math['loaded']:
        return

    if math['forward_period']:
        st.caption(f"Forward period: {math['forward_period']}")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Forward 12M (Previous)", math['previous'])
    with col2:
        st.metric("Forward 12M (Current)", math['current'])
    with col3:
        st.metric("Change", math['change'])
        st.markdown(colored(math['change'], math['change_class']), unsafe_allow_html=True)
    with col4:
        st.metric("Reconciliation", math['reconciliation'])
        st.markdown(status_badge(math['status'], math['status_variant']), unsafe_allow_html=True)

    st.plotly_chart(create_pipeline_math_waterfall(view.data), use_container_width=True)

    display_impact_bucket("🔴 Red", math['red_total'], math['red_items'], key="math_red")
    display_impact_bucket("🟢 Green", math['green_total'], math['green_items'], key="math_green")
    display_impact_bucket("⚪ Gray", math['gray_total'], math['gray_items'], key="math_gray")


def display_reconciliation(view):
    recon = build_reconciliation(view.data, view.analysis_month)
    st.title(f"🔍 {recon['title']}")

    if view.error:
        st.error(f"❌ Error loading pipeline reconciliation: {view.error}")
    if not recon['loaded']:
        return

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Previous Pipeline", recon['previous_total'])
    with col2:
        st.metric("Current Pipeline", recon['current_total'])
    with col3:
        st.metric("Net Change", recon['net_change'])
        st.markdown(colored(recon['net_change'], recon['net_change_class']), unsafe_allow_html=True)
    with col4:
        st.metric("Reconciliation Total", recon['reconciliation'])
        st.markdown(status_badge(recon['status'], recon['status_variant']), unsafe_allow_html=True)

    for category in recon['categories']:
        title = f"{category['label']} ({category['count']}): {category['total']}"
        if category['key'] == 'changed':
            title += f" | Impact {recon['changed_impact']}"
        with st.expander(title):
            df = rows_frame(category['rows'])
            if df.empty:
                st.info("📭 Nothing to see here... yet!")
            else:
                st.dataframe(
                    df,
                    use_container_width=True,
                    hide_index=True,
                    key=f"recon_{category['key']}",
                    column_config={'Close Date': st.column_config.DateColumn("Close Date", format="MM/DD/YYYY")}
                )


# ==========================================
# SCHEDULE GRID
# ==========================================

def _on_schedule_edit(editor, field_name, widget_key):
    editor.set_field(field_name, st.session_state[widget_key])


def display_schedule_grid(api):
    st.title("🗂️ Schedule Versions")

    record_id = st.text_input("Schedule Record Id", key="schedule_record_id").strip()
    if not record_id:
        st.info("👈 Enter a schedule record Id to load its versions")
        return

    editor = st.session_state.get('schedule_editor')
    if editor is None or st.session_state.get('schedule_record_key') != record_id:
        try:
            record = api.get_schedule_data(record_id)
        except ForecastError as e:
            logger.error("Error loading schedule data for %s: %s", record_id, e)
            st.error("❌ Error loading schedule data")
            return
        if editor is not None:
            editor.cancel()
        editor = ScheduleEditor(api, record)
        st.session_state.schedule_editor = editor
        st.session_state.schedule_record_key = record_id

    show_toast(editor.last_toast)

    rows = schedule_rows(editor.record)
    df = rows_frame(rows, ['Version', 'Month', 'Amount', 'Delta'])
    delta_colors = [f"color: {CLASS_COLORS.get(row['delta_class'], 'inherit')}" for row in rows]
    st.dataframe(df.style.apply(lambda _: delta_colors, subset=['Delta']),
                 use_container_width=True, hide_index=True)

    st.markdown("#### ✏️ Edit Versions")
    cols = st.columns(len(rows))
    for i, col in enumerate(cols):
        with col:
            month_key = f"sched_month_{record_id}_{i}"
            amount_key = f"sched_amount_{record_id}_{i}"
            st.text_input(f"Month {i}", value=editor.record.months[i], key=month_key,
                          on_change=_on_schedule_edit, args=(editor, f"Month{i}__c", month_key))
            st.number_input(f"Amount {i}", value=float(editor.record.amounts[i]), step=1000.0,
                            key=amount_key, on_change=_on_schedule_edit,
                            args=(editor, f"Amount{i}__c", amount_key))

    st.caption("Changes save automatically a second after you stop editing")
    if st.button("💾 Save Now"):
        if editor.flush():
            st.success("✅ Schedule saved")
        else:
            show_toast(editor.last_toast)


# ==========================================
# MAIN
# ==========================================

def main():
    configure_logging()

    # Dashboard tagline
    st.markdown("""
    <div style='text-align: center; padding: 10px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
                 color: white; border-radius: 10px; margin-bottom: 20px;'>
        <h3>📊 Forecast Dashboard</h3>
        <p style='font-size: 14px; margin: 0;'>Month over month, every dollar accounted for</p>
    </div>
    """, unsafe_allow_html=True)

    config = load_api_config()
    if config is None:
        with st.expander("📋 Setup Checklist"):
            st.markdown("""
            ### Quick Setup Guide:

            1. Create a connected app in the forecast org and obtain an access token
            2. Add the connection to `.streamlit/secrets.toml`:

            ```toml
            [salesforce]
            instance_url = "https://your-domain.my.salesforce.com"
            access_token = "00D..."
            # api_path = "/services/apexrest/forecast"
            # timeout = 30
            ```
            """)
        return

    session, views = get_forecast_state(config)

    with st.sidebar:
        st.markdown("### 🧭 Navigation")
        view_mode = st.radio(
            "Select View:",
            ["🏠 Forecast Home", "📋 Opportunity Recap", "🧮 Pipeline Math", "🔍 Reconciliation",
             "🔄 Opportunity Changes", "🗂️ Schedule Grid"],
            label_visibility="collapsed",
            key="nav_selector"
        )

        st.markdown("---")
        st.markdown(f"**Forecast Month:** {formatted_current_month(session.current_month)}")
        st.markdown(f"**Analysis Month:** {views['recap'].analysis_month}")
        st.caption(f"Last sync: {datetime.now().strftime('%I:%M %p')}")

        display_admin_controls(session, views, key_prefix="sidebar")

        if st.button("🔄 Refresh Data Now", use_container_width=True):
            st.cache_data.clear()
            session.refresh_all()
            for view in views.values():
                view.refresh()
            st.rerun()

        st.markdown("---")
        with st.expander("🔧 Connection Status"):
            st.code(config.base_url)
            st.write(f"Admin access: {'✅' if session.is_admin else '❌'}")
            if st.button("♻️ Reconnect"):
                reset_forecast_state()
                st.rerun()

    show_toast(st.session_state.pop('last_toast', None))

    if view_mode == "🏠 Forecast Home":
        display_home_page(session, views, config)
    elif view_mode == "📋 Opportunity Recap":
        display_recap(views['recap'], config)
    elif view_mode == "🧮 Pipeline Math":
        display_pipeline_math(views['math'])
    elif view_mode == "🔍 Reconciliation":
        display_reconciliation(views['reconciliation'])
    elif view_mode == "🔄 Opportunity Changes":
        st.title("🔄 Opportunity Changes")
        display_opportunity_changes(session.changes)
    else:
        display_schedule_grid(session.api)


if __name__ == "__main__":
    main()
