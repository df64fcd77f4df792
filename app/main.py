"""
Streamlit Frontend for FundLove

The screen a couple sees every day: pick a profile, put money in or take
it out, and watch the shared savings target fill up.

DESIGN PRINCIPLES:
1. The page only renders controller snapshots
2. Every button maps to exactly one controller operation
3. Buttons stay disabled while an operation is in flight
4. Failures are shown in plain words; nothing is retried behind the user's back
"""

import asyncio

import streamlit as st

from fundlove.config import get_settings, validate_all_settings
from fundlove.controller import (
    DashboardSnapshot,
    SavingsController,
    create_app_components,
    create_session_manager,
)
from fundlove.formatting import (
    format_amount_input,
    format_currency,
    format_date,
    format_number,
    parse_amount_input,
)
from fundlove.models.ledger import TransactionKind, utc_now
from fundlove.services.gateway import GatewayError
from fundlove.session import MemorySessionCache
from fundlove.validation import ValidationFailedError


# Page configuration
st.set_page_config(
    page_title="FundLove",
    page_icon="💰",
    layout="centered",
    initial_sidebar_state="collapsed",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .balance-card {
        padding: 24px;
        background: linear-gradient(135deg, #2563eb, #1e40af);
        color: white;
        border-radius: 16px;
        margin: 10px 0;
    }
    .balance-card h2 {
        color: white;
        font-size: 2.4em;
        margin: 0 0 12px 0;
    }
    .progress-track {
        background: rgba(255, 255, 255, 0.25);
        border-radius: 999px;
        height: 10px;
    }
    .progress-fill {
        background: white;
        border-radius: 999px;
        height: 10px;
    }
    .txn-deposit { color: #2563eb; font-weight: bold; }
    .txn-withdraw { color: #475569; font-weight: bold; }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create the components shared by all browser sessions (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    gateway, activity_logger = get_components()

    # The login belongs to this browser session only
    if "session_manager" not in st.session_state:
        st.session_state.session_manager = create_session_manager(
            gateway,
            cache=MemorySessionCache(st.session_state),
            activity_logger=activity_logger,
        )
    session_manager = st.session_state.session_manager

    if "session_checked" not in st.session_state:
        with st.spinner("Loading..."):
            run_async(session_manager.restore())
        st.session_state.session_checked = True

    if not session_manager.is_authenticated:
        st.session_state.pop("controller", None)
        render_login_page(gateway, session_manager)
        return

    if "controller" not in st.session_state:
        controller = SavingsController(
            gateway=gateway,
            profile=session_manager.profile,
            activity_logger=activity_logger,
        )
        run_async(controller.refresh())
        st.session_state.controller = controller

    render_dashboard(st.session_state.controller, session_manager)


def render_login_page(gateway, session_manager):
    """Render the profile picker."""
    st.title("💰 FundLove")
    st.markdown("Shared savings toward one goal.")

    try:
        profiles = run_async(gateway.list_profiles())
    except GatewayError as e:
        st.error(f"Could not load the profile list: {e}")
        profiles = []

    if not profiles:
        st.info("No profiles found. Add rows to the Users sheet first.")
        return

    profile_id = st.radio(
        "Choose your profile",
        options=[p.id for p in profiles],
        format_func=lambda pid: next(p.name for p in profiles if p.id == pid),
        index=None,
    )

    if st.button("Start saving", type="primary", disabled=not profile_id):
        try:
            run_async(session_manager.login(profile_id))
            st.rerun()
        except ValidationFailedError as e:
            st.error(str(e))
        except GatewayError as e:
            st.error(f"Login failed: {e}")


def render_dashboard(controller: SavingsController, session_manager):
    """Render the balance card, actions and recent transactions."""
    settings = get_settings().app
    snapshot = controller.snapshot()
    prefix = settings.currency_prefix

    col1, col2, col3 = st.columns([3, 1, 1])
    with col1:
        st.markdown(f"### Hi, {snapshot.profile.name}")
        st.caption(format_date(utc_now()))
    with col2:
        if st.button("Refresh", disabled=snapshot.busy):
            run_async(controller.refresh())
            st.rerun()
    with col3:
        if st.button("Log out"):
            session_manager.logout()
            st.session_state.pop("controller", None)
            st.rerun()

    if snapshot.last_error:
        st.warning(snapshot.last_error)

    render_balance_card(snapshot, prefix)
    render_actions(controller, snapshot, settings)
    render_transactions(controller, snapshot, prefix)


def render_balance_card(snapshot: DashboardSnapshot, prefix: str):
    progress = snapshot.progress
    remaining = format_currency(progress.remaining_amount, prefix)

    if progress.is_achieved:
        status = "🎉 Target reached!"
    elif progress.is_overdue:
        status = "The target period has ended"
    else:
        status = f"{progress.remaining_days} days left"

    st.markdown(f"""
    <div class="balance-card">
        <p>Total savings</p>
        <h2>{format_currency(snapshot.balance, prefix)}</h2>
        <p>Progress {progress.progress_percent:.1f}%</p>
        <div class="progress-track">
            <div class="progress-fill" style="width: {progress.display_percent:.1f}%"></div>
        </div>
        <p>Target: {format_currency(progress.target_amount, prefix)} / {progress.target_months} months</p>
        <p>{status} · Ends {format_date(progress.end_date)}</p>
        <p>Still needed: {remaining}</p>
    </div>
    """, unsafe_allow_html=True)


def render_actions(controller: SavingsController, snapshot: DashboardSnapshot, settings):
    deposit_tab, withdraw_tab, target_tab = st.tabs(["Deposit", "Withdraw", "Target"])

    with deposit_tab:
        render_money_form(controller, snapshot, TransactionKind.DEPOSIT, settings)
    with withdraw_tab:
        render_money_form(controller, snapshot, TransactionKind.WITHDRAW, settings)

    with target_tab:
        with st.form("target_form"):
            target_text = st.text_input(
                f"Savings target ({settings.currency_prefix})",
                value=format_number(snapshot.progress.target_amount),
            )
            months_text = st.text_input(
                "Duration (months)",
                value=str(snapshot.progress.target_months),
            )
            st.caption("Saving restarts the countdown from today.")
            submitted = st.form_submit_button("Save changes", disabled=snapshot.busy)

        if submitted:
            outcome = run_async(controller.save_target(
                parse_amount_input(target_text),
                parse_amount_input(months_text),
            ))
            show_outcome(outcome)


def render_money_form(controller, snapshot, kind: TransactionKind, settings):
    key = kind.value
    amount_key = f"{key}_amount"

    quick_cols = st.columns(len(settings.quick_amounts_list))
    for col, quick in zip(quick_cols, settings.quick_amounts_list):
        if col.button(format_currency(quick, settings.currency_prefix), key=f"{key}_{quick}"):
            st.session_state[amount_key] = format_number(quick)

    with st.form(f"{key}_form"):
        amount_text = st.text_input(
            f"Amount ({settings.currency_prefix})",
            key=amount_key,
            placeholder="0",
        )
        note = st.text_input("Note (optional)", key=f"{key}_note")
        label = "Deposit now" if kind == TransactionKind.DEPOSIT else "Withdraw"
        submitted = st.form_submit_button(label, disabled=snapshot.busy)

    if submitted:
        outcome = run_async(controller.add_transaction(
            kind,
            parse_amount_input(amount_text),
            note,
        ))
        show_outcome(outcome)


def render_transactions(controller: SavingsController, snapshot: DashboardSnapshot, prefix: str):
    st.markdown("### Recent transactions")

    if not snapshot.ledger.recent:
        st.info("No transactions yet.")
        return

    for txn in snapshot.ledger.recent:
        sign = "+" if txn.kind == TransactionKind.DEPOSIT else "-"
        css = "txn-deposit" if txn.kind == TransactionKind.DEPOSIT else "txn-withdraw"
        with st.container(border=True):
            st.markdown(
                f"**{txn.note or ('Deposit' if sign == '+' else 'Withdrawal')}**  \n"
                f"{txn.owner_name} · {format_date(txn.created_at)}  \n"
                f"<span class='{css}'>{sign}{format_currency(txn.amount, prefix)}</span>",
                unsafe_allow_html=True,
            )
            if snapshot.can_modify(txn):
                render_transaction_controls(controller, snapshot, txn)

    if snapshot.ledger.hidden_count:
        st.caption(f"{snapshot.ledger.hidden_count} older transactions not shown.")


def render_transaction_controls(controller, snapshot, txn):
    with st.expander("Edit"):
        with st.form(f"edit_{txn.id}"):
            kind = st.radio(
                "Type",
                options=list(TransactionKind),
                index=list(TransactionKind).index(txn.kind),
                format_func=lambda k: k.value.title(),
                horizontal=True,
            )
            amount_text = st.text_input("Amount", value=format_amount_input(str(txn.amount)))
            note = st.text_input("Note", value=txn.note or "")
            save = st.form_submit_button("Save changes", disabled=snapshot.busy)
        if save:
            outcome = run_async(controller.edit_transaction(
                txn.id,
                kind,
                parse_amount_input(amount_text),
                note,
            ))
            show_outcome(outcome)

        confirm = st.checkbox("Yes, delete this transaction", key=f"confirm_{txn.id}")
        if st.button("Delete", key=f"delete_{txn.id}", disabled=not confirm or snapshot.busy):
            show_outcome(run_async(controller.delete_transaction(txn.id)))


def show_outcome(outcome):
    if outcome.success:
        st.success(outcome.message)
        st.rerun()
    else:
        st.error(outcome.message)


def render_settings_status():
    """Show which configuration sections loaded."""
    status = validate_all_settings()
    for name in ("google_sheets", "session", "app"):
        if status.get(name, False):
            st.sidebar.success(f"✅ {name}")
        else:
            st.sidebar.error(f"❌ {name} - {status.get(f'{name}_error', 'Not configured')}")


if __name__ == "__main__":
    render_settings_status()
    main()
