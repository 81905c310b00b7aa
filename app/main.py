"""
Streamlit Frontend for Savings Vault

A thin UI over LedgerService. Every button maps to exactly one ledger
operation, and every rejection is shown with its specific error kind.

DESIGN PRINCIPLES:
1. The signed-in account is explicit (sidebar), never implied
2. Withdrawals show their unlock time so nobody is surprised by the wait
3. Clear error messages, no hidden retries
4. The UI never changes balances itself; it only calls the ledger
"""

from datetime import date, datetime, time, timezone

import streamlit as st

from savings_vault.audit import create_correlation_id
from savings_vault.config import get_settings, validate_all_settings
from savings_vault.ledger import LedgerError, LedgerService
from savings_vault.models.account import WithdrawalState
from savings_vault.orchestrator import LedgerComponents, create_ledger_components
from savings_vault.runner import BackgroundLoop


# Page configuration
st.set_page_config(
    page_title="Savings Vault",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_loop() -> BackgroundLoop:
    """The one event loop every session submits ledger calls to (cached)."""
    return BackgroundLoop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return get_loop().run(coro)


@st.cache_resource
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    try:
        return create_ledger_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_ledger_components(use_storage=False)


def attempt(label: str, coro):
    """Run one ledger operation and report the outcome."""
    try:
        result = run_async(coro)
    except LedgerError as e:
        st.error(f"❌ {label} rejected ({e.kind}): {e}")
        return None
    st.success(f"✅ {label} done")
    return result


def main():
    """Main application entry point."""
    components = get_components()
    ledger = components.ledger
    unit = get_settings().app.currency_label

    st.sidebar.title("🏦 Savings Vault")
    st.sidebar.markdown("---")

    account_id = st.sidebar.text_input("Signed in as", value="alice").strip()

    page = st.sidebar.radio(
        "Navigate to:",
        ["💰 My Account", "🎯 Goal", "⏳ Withdraw", "📊 Ledger", "⚙️ Settings"],
        index=0,
    )

    if ledger.emergency_stop_active:
        st.sidebar.error("🛑 Emergency stop is active")

    if not account_id:
        st.warning("Enter an account id in the sidebar to continue.")
        return

    if page == "💰 My Account":
        render_account_page(ledger, account_id, unit)
    elif page == "🎯 Goal":
        render_goal_page(ledger, account_id, unit)
    elif page == "⏳ Withdraw":
        render_withdraw_page(ledger, account_id, unit)
    elif page == "📊 Ledger":
        render_ledger_page(ledger, account_id, unit)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_account_page(ledger: LedgerService, account_id: str, unit: str):
    st.title("💰 My Account")

    summary = ledger.get_account_summary(account_id, account_id)
    st.metric("Balance", f"{summary.balance} {unit}")

    with st.form("deposit"):
        amount = st.number_input("Deposit amount", min_value=1, step=1, value=1)
        if st.form_submit_button("Deposit"):
            new_balance = attempt(
                "Deposit",
                ledger.deposit(account_id, int(amount), correlation_id=create_correlation_id()),
            )
            if new_balance is not None:
                st.info(f"New balance: {new_balance} {unit}")

    st.markdown("### Partners")
    st.caption("Partners can see your savings goal. This cannot be undone.")
    if summary.partners:
        st.write(", ".join(summary.partners))
    with st.form("partner"):
        partner_id = st.text_input("Partner account id")
        if st.form_submit_button("Add partner"):
            attempt("Add partner", ledger.add_partner(account_id, partner_id.strip()))


def render_goal_page(ledger: LedgerService, account_id: str, unit: str):
    st.title("🎯 Savings Goal")

    summary = ledger.get_account_summary(account_id, account_id)
    goal = summary.goal
    if goal:
        st.progress(summary.goal_progress or 0.0)
        st.markdown(
            f"**{goal.description or 'Savings goal'}**: "
            f"{summary.balance} / {goal.target_amount} {unit}, "
            f"deadline {goal.deadline:%Y-%m-%d}"
        )
        if goal.is_achieved:
            st.success("🎉 Goal achieved")
        elif goal.locked:
            st.warning("🔒 Locked: withdrawals wait until the goal is met or the deadline passes")
        elif st.button("Lock goal"):
            attempt("Lock goal", ledger.lock_goal(account_id))
    else:
        st.info("No goal yet.")

    st.markdown("### Set a new goal")
    st.caption("Setting a goal replaces the current one.")
    with st.form("goal"):
        target = st.number_input("Target", min_value=1, step=1, value=100)
        deadline_day = st.date_input("Deadline", value=date.today())
        description = st.text_input("What are you saving for?")
        if st.form_submit_button("Set goal"):
            deadline = datetime.combine(deadline_day, time.max, tzinfo=timezone.utc)
            attempt(
                "Set goal",
                ledger.set_goal(account_id, int(target), deadline, description),
            )

    st.markdown("### View a partner's goal")
    owner_id = st.text_input("Account id")
    if owner_id:
        try:
            other = ledger.get_goal(owner_id.strip(), account_id)
        except LedgerError as e:
            st.error(f"❌ {e.kind}: {e}")
        else:
            if other is None:
                st.info("That account has no goal.")
            else:
                st.json(other.model_dump(mode="json"))


def render_withdraw_page(ledger: LedgerService, account_id: str, unit: str):
    st.title("⏳ Withdraw")
    st.markdown(
        f"Withdrawals wait **{ledger.scheduler.delay}** between request and payout."
    )

    summary = ledger.get_account_summary(account_id, account_id)
    request = summary.pending_withdrawal

    if summary.withdrawal_state == WithdrawalState.PENDING:
        st.info(f"Pending: {request.amount} {unit}, unlocks {request.unlock_time:%Y-%m-%d %H:%M} UTC")
        if st.button("Execute withdrawal"):
            paid = attempt("Withdrawal", ledger.execute_withdrawal(account_id))
            if paid is not None:
                st.info(f"Paid out {paid} {unit}")
        return

    if summary.withdrawal_state == WithdrawalState.EXECUTED:
        st.caption(f"Last withdrawal: {request.amount} {unit} on {request.executed_at:%Y-%m-%d}")

    with st.form("request"):
        amount = st.number_input("Amount", min_value=1, step=1, value=1)
        if st.form_submit_button("Request withdrawal"):
            unlock_time = attempt(
                "Withdrawal request",
                ledger.request_withdrawal(account_id, int(amount)),
            )
            if unlock_time is not None:
                st.info(f"Unlocks {unlock_time:%Y-%m-%d %H:%M} UTC")


def render_ledger_page(ledger: LedgerService, account_id: str, unit: str):
    st.title("📊 Ledger")

    stats = ledger.get_statistics()
    col1, col2, col3 = st.columns(3)
    col1.metric("Total saved", f"{stats.total_balance} {unit}")
    col2.metric("Accounts funded", stats.total_accounts_ever_funded)
    col3.metric("Withdrawals paid", stats.total_withdrawals_executed)

    st.markdown("### Administrator")
    state = "ACTIVE" if ledger.emergency_stop_active else "off"
    st.markdown(f"Emergency stop: **{state}**")
    if st.button("Toggle emergency stop"):
        attempt("Emergency stop toggle", ledger.toggle_emergency_stop(account_id))


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Ledger rules", "ledger"),
        ("Google Sheets (Audit trail)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Configure the ledger with `LEDGER_*` environment variables or a `.env` file: "
        "`LEDGER_WITHDRAWAL_DELAY_SECONDS`, `LEDGER_MIN_GOAL_TARGET`, "
        "`LEDGER_ADMINISTRATOR_ID`."
    )


if __name__ == "__main__":
    main()
