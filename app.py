# app.py
import streamlit as st

from analysis import AnalysisState, can_analyze, export_matches, run_analysis
from config import ImportFailed, MissingCredentials, Settings, setup_logging
from importer import UPLOAD_TYPES
from matching import create_service
from store import ClientStore, FundStore, refresh_portfolio

CLIENTS = "CLIENTS"
FUNDS = "FUNDS"
MATCHES = "MATCHES"

HEADERS = {
    CLIENTS: ("Client Management", "Input your current customer list for cross-referencing."),
    FUNDS: ("Fund Intelligence", "Track VC funds and automatically retrieve their portfolio companies."),
    MATCHES: ("Overlap Analysis", "Identify shared business relationships using AI matching."),
}

STATUS_DOTS = {"completed": "🟢", "searching": "🟡", "error": "🔴", "idle": "⚪"}

settings = Settings.from_env()
setup_logging(settings.log_level)

st.set_page_config("Portfolio Overlap Finder", layout="wide")

try:
    settings.require_api_key()
except MissingCredentials as e:
    st.error(f"**API Key Missing**\n\n{e}")
    st.stop()


@st.cache_resource
def get_service(api_key: str, model: str, match_temperature: float):
    return create_service(api_key, model=model, match_temperature=match_temperature)


service = get_service(settings.api_key, settings.model, settings.match_temperature)

# ---------- Session state ----------
defaults = {
    "clients": ClientStore,
    "funds": FundStore,
    "analysis": AnalysisState,
    "confirm_clear": lambda: None,
    "upload_nonce": lambda: 0,
    "flash": lambda: None,
}
for key, factory in defaults.items():
    if key not in st.session_state:
        st.session_state[key] = factory()

clients: ClientStore = st.session_state.clients
funds: FundStore = st.session_state.funds
analysis: AnalysisState = st.session_state.analysis


# ---------- Clients ----------
def _add_clients():
    text = st.session_state.client_input
    if text.strip():
        clients.add_text(text)
        st.session_state.client_input = ""


def _import_file():
    uploaded = st.session_state.get(f"client_upload_{st.session_state.upload_nonce}")
    if uploaded is None:
        return
    try:
        added = clients.import_file(uploaded.getvalue(), uploaded.name)
    except ImportFailed as e:
        st.session_state.flash = ("error", str(e))
    else:
        st.session_state.flash = ("success", f"Imported {len(added)} clients from {uploaded.name}.")
    # fresh uploader so the same file can be selected again
    st.session_state.upload_nonce += 1


def _confirm_clear():
    if st.session_state.confirm_clear == "all":
        clients.clear()
    elif st.session_state.confirm_clear == "imported":
        clients.clear_imported()
    st.session_state.confirm_clear = None


def render_clients():
    left, right = st.columns([3, 1])
    left.subheader("👥 Manage Client List")
    right.metric("Clients", len(clients))

    flash = st.session_state.flash
    if flash:
        kind, message = flash
        (st.error if kind == "error" else st.success)(message)
        st.session_state.flash = None

    st.text_area(
        "Paste Client Names (One per line or comma separated)",
        key="client_input",
        height=130,
        placeholder="Example:\nWiz\nבנק לאומי\nCheck Point Software",
    )

    cols = st.columns(4)
    cols[0].button("➕ Add Clients", on_click=_add_clients, type="primary")
    cols[1].button("📄 Load Demo", on_click=clients.load_demo)
    if clients.has_imported and cols[2].button("Clear Imported"):
        st.session_state.confirm_clear = "imported"
    if len(clients) > 0 and cols[3].button("🗑️ Clear All"):
        st.session_state.confirm_clear = "all"

    pending = st.session_state.confirm_clear
    if pending:
        question = (
            "Are you sure you want to clear all clients?" if pending == "all"
            else "Are you sure you want to remove all imported clients?"
        )
        st.warning(question)
        yes, no = st.columns(2)
        yes.button("Yes, clear", on_click=_confirm_clear)
        no.button("Cancel", on_click=lambda: st.session_state.update(confirm_clear=None))

    st.file_uploader(
        "Import Excel / CSV",
        type=UPLOAD_TYPES,
        key=f"client_upload_{st.session_state.upload_nonce}",
        on_change=_import_file,
    )
    st.caption("For Excel import, names should be in the first column.")

    if len(clients) > 0:
        st.markdown("#### Current List")
        grid = st.columns(4)
        for i, client in enumerate(clients):
            marker = " 🟢" if client.source == "file" else ""
            grid[i % 4].markdown(f"{client.name}{marker}")


# ---------- Funds ----------
def _scan(fund_id: str, name: str):
    with st.spinner(f"Scanning the web for {name}..."):
        refresh_portfolio(funds, fund_id, service)
    st.rerun()


def render_funds():
    st.subheader("🏢 Target VC Funds")

    with st.form("add_fund", clear_on_submit=True):
        name_col, button_col = st.columns([4, 1])
        fund_name = name_col.text_input(
            "Fund name",
            placeholder="Enter VC Fund Name (e.g. Pitango, Viola, Sequoia)",
            label_visibility="collapsed",
        )
        submitted = button_col.form_submit_button("🔍 Scan")

    if submitted and fund_name.strip():
        fund = funds.add(fund_name)
        _scan(fund.id, fund.name)

    if len(funds) == 0:
        st.info("No funds tracked. Add a fund to start scanning their portfolio.")
        return

    for fund in list(funds):
        with st.container(border=True):
            title, info, action = st.columns([3, 2, 1])
            title.markdown(f"{STATUS_DOTS[fund.status]} **{fund.name}**")
            if fund.status == "searching":
                info.caption("Scanning web...")
            else:
                info.caption(f"{len(fund.portfolio)} Companies found")
            if action.button("Remove", key=f"remove_{fund.id}"):
                funds.remove(fund.id)
                st.rerun()

            if fund.status == "completed" and fund.portfolio:
                chips = [
                    f"[{c.name}]({c.url})" if c.url else c.name
                    for c in fund.portfolio
                ]
                st.markdown(" · ".join(chips))
                if fund.last_updated:
                    st.caption(f"Last updated {fund.last_updated:%Y-%m-%d %H:%M}")

            if fund.status == "error":
                st.error(f"{fund.error or 'Could not retrieve portfolio data.'} Try again or check the name.")
            # a search left "searching" was cut off by a rerun
            if fund.status in ("error", "searching"):
                if st.button("Rescan", key=f"rescan_{fund.id}"):
                    funds.rescan(fund.id)
                    _scan(fund.id, fund.name)


# ---------- Matches ----------
def _analyze():
    analysis.start()
    progress = st.progress(0.0, text="Analyzing Connections...")

    def on_progress(i, total, fund):
        progress.progress(i / total, text=f"Matching against {fund.name} ({i + 1}/{total})")

    run = run_analysis(service, list(clients), list(funds), on_progress=on_progress)
    analysis.finish(run)
    st.rerun()


def render_matches():
    funds_with_data = len(funds.with_portfolio())
    if not can_analyze(list(clients), list(funds)):
        st.info(
            "**Ready to Match?**\n\n"
            "Please add at least one Client and one Fund with portfolio data."
        )
        return

    if not analysis.has_run:
        st.subheader("Portfolio Overlap Analysis")
        st.write(
            f"The AI will cross-reference your **{len(clients)} Clients** against the "
            f"portfolios of **{funds_with_data} Funds**. "
            "It handles name variations (Hebrew/English) automatically."
        )
        if st.button("✨ Analyze Overlaps", type="primary"):
            _analyze()
        return

    head, rerun = st.columns([4, 1])
    head.subheader("Analysis Results")
    if rerun.button("Re-run Analysis"):
        _analyze()

    run = analysis.run
    stats = run.stats
    st.write(
        f"High: **{stats['high']}** | Medium: **{stats['medium']}** | Low: **{stats['low']}** "
        f"| Funds analyzed: **{stats['funds']}** | {stats['elapsed']:.1f}s"
    )

    if not run.matches:
        st.info("No direct matches found between your client list and the selected funds.")
    else:
        for match in run.matches:
            with st.container(border=True):
                client_col, badge_col, company_col = st.columns([2, 1, 2])
                client_col.caption("YOUR CLIENT")
                client_col.markdown(f"**{match.client_name}**")
                badge_col.markdown(f"✅ Matched ({match.confidence})")
                company_col.caption(f"{match.fund_name.upper()} PORTFOLIO")
                company_col.markdown(f"**{match.portfolio_company}**")
                st.caption(f"Reasoning: {match.reasoning}")

        st.download_button(
            "⬇️ Download matches (Excel)",
            data=export_matches(run.matches).getvalue(),
            file_name="portfolio_matches.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    if run.log_lines:
        with st.expander("Run log"):
            st.text("\n".join(run.log_lines))


# ---------- Layout ----------
labels = {
    CLIENTS: f"My Clients ({len(clients)})",
    FUNDS: f"VC Funds ({len(funds)})",
    MATCHES: "Analyze & Match",
}
with st.sidebar:
    st.title("Finance Ops")
    view = st.radio("View", list(labels), format_func=labels.get, label_visibility="collapsed")
    st.divider()
    st.caption(f"Model: {settings.model}")

title, subtitle = HEADERS[view]
st.title(title)
st.caption(subtitle)

if view == CLIENTS:
    render_clients()
elif view == FUNDS:
    render_funds()
else:
    render_matches()
