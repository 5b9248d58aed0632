"""
app.py
Streamlit Gym Management System (front desk + owner).
Run: streamlit run app.py
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd
import streamlit as st

import api
import auth
import config
import db
import pdfs
import utils
from models import CUSTOM_PLAN, ENQUIRY_STATUSES, MESSAGE_STATUSES, PAYMENT_TYPES, PLAN_MONTHS, STAFF_ROLES
from services import (
    attendance,
    billing,
    enquiries,
    expenses,
    masters,
    measurements,
    members,
    receipts,
    reminders,
    reports,
    sample_data,
    staff,
    taxes,
)

st.set_page_config(page_title="Gym Management System", layout="wide")

PLAN_TYPES = list(PLAN_MONTHS.keys()) + [CUSTOM_PLAN]


@st.cache_resource
def get_settings() -> config.Settings:
    settings = config.load_settings()
    config.setup_logging(settings)
    config.ensure_dirs(settings)
    return settings


@st.cache_resource
def get_database() -> db.Database:
    settings = get_settings()
    database = db.Database(settings.db_file)
    # Initialize DB + default admin if needed
    db.init_db(database, auth.hash_password("admin123"))
    return database


def init_once():
    if st.session_state.get("statuses_refreshed"):
        return
    billing.update_subscription_statuses(get_database(), window_days=get_settings().expiring_soon_days)
    st.session_state.statuses_refreshed = True


def pdf_target() -> pdfs.PdfTarget:
    settings = get_settings()
    return pdfs.PdfTarget(directory=settings.receipts_dir, gym_name=settings.gym_name)


def act(operation: str, *args, success: str | None = None, **kwargs):
    """Run a bridge operation; show the error (or success message) in the page."""
    result = api.call(get_database(), operation, *args, **kwargs)
    if not result["success"]:
        st.error(result["error"])
        return None
    if success:
        st.success(success)
    return result["data"]


def frame(records, columns: list[str] | None = None) -> pd.DataFrame:
    return utils.records_to_frame(records, columns)


def user() -> str:
    return st.session_state.username or "System"


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None
    if "role" not in st.session_state:
        st.session_state.role = None


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.session_state.role = None
    st.success("Logged out.")


def login_screen():
    st.title("🔐 Gym Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            data = act("login", username.strip(), password)
            if data:
                st.session_state.logged_in = True
                st.session_state.username = data["user"]["username"]
                st.session_state.role = data["user"]["role"]
                st.rerun()

    with col2:
        st.info(
            "First run creates a default admin:\n\n"
            "- username: **admin**\n"
            "- password: **admin123**\n\n"
            "You will be forced to change it on first login."
        )


def password_form(key: str) -> None:
    new1 = st.text_input("New password", type="password", key=f"{key}_1")
    new2 = st.text_input("Confirm new password", type="password", key=f"{key}_2")
    if st.button("Update password", type="primary", key=f"{key}_btn"):
        if new1 != new2:
            st.error("Passwords do not match.")
            return
        if act("changePassword", st.session_state.username, new1) is not None:
            st.success("Password updated.")
            st.rerun()


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    password_form("force")


# ---------- Shared widgets ----------

def member_picker(label: str = "Member", key: str | None = None, include_partial: bool = False):
    found = members.list_members(get_database())
    if not include_partial:
        found = [m for m in found if not m.is_partial]
    if not found:
        st.info("No members yet. Add a member first.")
        return None
    options = {f"{m.name} ({m.mobile_no}) - #{m.custom_member_id or m.id}": m for m in found}
    return options[st.selectbox(label, list(options.keys()), key=key)]


def payment_type_select(label: str = "Payment type", key: str | None = None) -> str:
    active = [p.name for p in masters.list_items(get_database(), "payment_types") if p.name in PAYMENT_TYPES]
    return st.selectbox(label, active or list(PAYMENT_TYPES), key=key)


def offer_pdf(receipt_payload: dict | None, pdf_path: str | None = None, key: str = "pdf") -> None:
    if pdf_path and Path(pdf_path).exists():
        st.download_button(
            "Download receipt PDF",
            data=Path(pdf_path).read_bytes(),
            file_name=Path(pdf_path).name,
            mime="application/pdf",
            key=key,
        )
    elif receipt_payload:
        st.caption(f"Receipt {receipt_payload['receiptNumber']} saved.")


# ---------- Pages ----------

def dashboard_page():
    st.header("📊 Dashboard")

    database = get_database()
    settings = get_settings()
    summary = reports.dashboard_summary(database)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Active members", summary.active_members)
    c2.metric(f"Expiring in next {settings.expiring_soon_days} days", summary.expiring_soon)
    c3.metric("Members with dues", summary.members_with_dues, f"{summary.total_due:,.2f} due", delta_color="off")
    c4.metric("Income (current month)", f"{summary.month_income:,.2f}")

    c5, c6, c7, c8 = st.columns(4)
    c5.metric("Expired", summary.expired)
    c6.metric("Frozen", summary.frozen_members)
    c7.metric("Partial registrations", summary.partial_members)
    c8.metric("Open enquiries", summary.open_enquiries)

    st.divider()

    st.subheader(f"Expiring soon (next {settings.expiring_soon_days} days)")
    expiring = reports.members_expiring(database, days=settings.expiring_soon_days)
    if expiring:
        st.dataframe(
            frame(expiring, ["custom_member_id", "name", "mobile_no", "plan_type", "subscription_end_date"]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption(f"No members expiring in the next {settings.expiring_soon_days} days.")

    st.subheader("Enquiry follow-ups due")
    due = enquiries.follow_ups_due(database)
    if due:
        st.dataframe(
            frame(due, ["enquiry_number", "name", "mobile_no", "status", "follow_up_date"]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No follow-ups due.")


def member_form(existing=None):
    database = get_database()
    if existing:
        st.subheader(f"✏️ Edit Member #{existing.custom_member_id}")
    else:
        st.subheader("➕ Add Member")

    occupations = [o.name for o in masters.list_items(database, "occupations")]
    packages = {p.name: p for p in masters.list_items(database, "packages")}
    package = None
    if packages and not existing:
        chosen = st.selectbox("Package (fills plan and fees)", ["(none)"] + list(packages.keys()))
        package = packages.get(chosen)

    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Full name", value=existing.name if existing else "")
        mobile_no = st.text_input("Mobile (10 digits)", value=(existing.mobile_no or "") if existing else "")
        email = st.text_input("Email (optional)", value=(existing.email or "") if existing else "")
        sex = st.selectbox("Sex", ["", "male", "female", "other"],
                           index=["", "male", "female", "other"].index(existing.sex or "") if existing else 0)
        dob = st.text_input("Date of birth (YYYY-MM-DD)", value=(existing.date_of_birth or "") if existing else "")

    with col2:
        address = st.text_input("Address", value=(existing.address or "") if existing else "")
        occupation_options = [""] + occupations
        current_occupation = existing.occupation if existing and existing.occupation in occupations else ""
        occupation = st.selectbox("Occupation", occupation_options, index=occupation_options.index(current_occupation))
        default_plan = package.duration_type if package else (existing.plan_type if existing else "monthly")
        plan_type = st.selectbox("Plan type", PLAN_TYPES, index=PLAN_TYPES.index(default_plan or "monthly"))
        custom_months = None
        if plan_type == CUSTOM_PLAN:
            custom_months = st.number_input(
                "Months", min_value=1, value=package.duration_months if package else 1, step=1
            )
        start_date = st.date_input(
            "Start date",
            value=utils.parse_iso(existing.subscription_start_date)
            if existing and existing.subscription_start_date
            else date.today(),
        ).isoformat()

    with col3:
        registration_fee = st.text_input(
            "Registration fee",
            value=str(package.registration_fee if package else (existing.registration_fee if existing else "0")),
        )
        package_fee = st.text_input(
            "Package fee", value=str(package.price if package else (existing.package_fee if existing else "0"))
        )
        discount = st.text_input(
            "Discount", value=str(package.discount if package else (existing.discount if existing else "0"))
        )
        paid_amount = None
        payment_mode = existing.payment_mode if existing else None
        if not existing:
            paid_amount = st.text_input("Paid now", value="0")
            payment_mode = payment_type_select("Payment mode", key="member_form_payment")

    data = {
        "name": name,
        "mobile_no": mobile_no,
        "email": email or None,
        "sex": sex or None,
        "date_of_birth": dob or None,
        "address": address or None,
        "occupation": occupation or None,
        "plan_type": plan_type,
        "custom_months": custom_months,
        "subscription_start_date": start_date,
        "registration_fee": registration_fee,
        "package_fee": package_fee,
        "discount": discount,
        "payment_mode": payment_mode,
    }
    if not existing:
        data["paid_amount"] = paid_amount

    errors = utils.validate_member_inputs(data)
    if errors:
        for e in errors:
            st.error(e)

    c1, c2 = st.columns(2)
    with c1:
        submitted = st.button("Save", type="primary", disabled=bool(errors))
    with c2:
        partial = (not existing) and st.button("Save as partial registration")

    if submitted:
        if existing:
            if act("updateMember", existing.id, data, success="Member updated.") is not None:
                st.session_state.edit_member_id = None
                st.rerun()
        else:
            created = act("createMember", data, created_by=user(), pdf=pdf_target(), success="Member added.")
            if created:
                act("queueWelcomeMessage", members.get_member(database, created["id"]),
                    gym_name=get_settings().gym_name)
    if partial:
        act("savePartialMember", data, success="Partial registration saved.")


def members_page():
    st.header("👥 Members")

    database = get_database()
    with st.sidebar:
        st.subheader("Search & Filters")
        search = st.text_input("Search (name/mobile/number)")
        status_filter = st.selectbox("Status", ["All", "active", "inactive", "frozen", "partial"])

    found = members.list_members(database, search=search, status=None if status_filter == "All" else status_filter)
    df = frame(found, [
        "id", "custom_member_id", "name", "mobile_no", "plan_type", "subscription_start_date",
        "subscription_end_date", "subscription_status", "status", "membership_fees", "paid_amount",
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)

    st.divider()

    colA, colB = st.columns([1, 2])
    with colA:
        st.subheader("Select member")
        member_ids = df["id"].tolist() if not df.empty else []
        selected_id = st.selectbox("Member ID", options=["(none)"] + [str(i) for i in member_ids])

    with colB:
        if selected_id != "(none)":
            m = members.get_member(database, int(selected_id))
            totals = billing.member_totals(database, m.id)
            st.write(
                f"**{m.name}** #{m.custom_member_id} | Fees: **{totals.total_fees}** | "
                f"Paid: **{totals.paid}** | Due: **{totals.due}** | Ends: **{m.subscription_end_date}**"
            )
            c1, c2, c3 = st.columns(3)
            with c1:
                if st.button("Edit"):
                    st.session_state.edit_member_id = m.id
                    st.rerun()
                new_number = st.text_input("Member number", value=m.custom_member_id or "")
                if st.button("Change number"):
                    act("updateMemberNumber", m.id, new_number, success="Member number updated.")
            with c2:
                if m.status in ("active", "frozen") and st.button("Unfreeze" if m.status == "frozen" else "Freeze"):
                    act("updateMember", m.id, {"status": "active" if m.status == "frozen" else "frozen"},
                        success="Status changed.")
                    st.rerun()
            with c3:
                reason = st.text_input("Deletion reason", key="del_reason")
                delete_confirm = st.checkbox("Confirm delete", value=False, key="del_confirm")
                if st.button("Delete", type="secondary", disabled=not delete_confirm):
                    if act("deleteMember", m.id, deleted_by=user(), reason=reason or None,
                           success="Member moved to deleted members.") is not None:
                        st.rerun()

    st.divider()

    if st.session_state.get("edit_member_id"):
        existing = members.get_member(database, st.session_state.edit_member_id)
        member_form(existing=existing)
        if st.button("Cancel edit"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(existing=None)

    partials = members.get_partial_members(database)
    if partials:
        st.divider()
        st.subheader("Complete a partial registration")
        options = {f"{p.name} ({p.mobile_no})": p for p in partials}
        p = options[st.selectbox("Partial registration", list(options.keys()))]
        c1, c2, c3 = st.columns(3)
        with c1:
            plan_type = st.selectbox("Plan type", PLAN_TYPES, key="partial_plan")
            package_fee = st.text_input("Package fee", value="0", key="partial_package")
        with c2:
            registration_fee = st.text_input("Registration fee", value="0", key="partial_reg")
            discount = st.text_input("Discount", value="0", key="partial_discount")
        with c3:
            paid_amount = st.text_input("Paid now", value="0", key="partial_paid")
            payment_mode = payment_type_select("Payment mode", key="partial_payment")
        if st.button("Complete registration", type="primary"):
            act(
                "completePartialMember",
                p.id,
                {
                    "plan_type": plan_type,
                    "package_fee": package_fee,
                    "registration_fee": registration_fee,
                    "discount": discount,
                    "paid_amount": paid_amount,
                    "payment_mode": payment_mode,
                },
                created_by=user(),
                pdf=pdf_target(),
                success="Registration completed.",
            )


def due_payments_page():
    st.header("💳 Due Payments")

    database = get_database()
    dues = billing.members_with_due_amounts(database, only_outstanding=True)
    if not dues:
        st.info("No outstanding dues.")
        return

    df = pd.DataFrame([
        {
            "id": d.member.id,
            "member": d.member.custom_member_id,
            "name": d.member.name,
            "mobile": d.member.mobile_no,
            "total_fees": d.totals.total_fees,
            "paid": d.totals.paid,
            "due": d.totals.due,
            "unpaid_invoices": d.unpaid_invoices,
        }
        for d in dues
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)

    options = {f"{d.member.name} - #{d.member.custom_member_id} (due {d.totals.due})": d for d in dues}
    chosen = options[st.selectbox("Member", list(options.keys()))]

    c1, c2 = st.columns(2)
    with c1:
        amount = st.text_input("Amount", value=str(chosen.totals.due))
    with c2:
        payment_type = payment_type_select(key="due_payment_type")

    if st.button("Record payment", type="primary"):
        result = act("payMemberDueAmount", chosen.member.id, amount, payment_type=payment_type,
                     created_by=user(), pdf=pdf_target())
        if result:
            st.success(result["message"])
            offer_pdf(result["receipt"], result["pdfPath"], key="due_pdf")
            act("queueReceiptMessage", receipts.get_receipt(database, result["receipt"]["id"]),
                gym_name=get_settings().gym_name)

    st.divider()
    st.subheader("Payment history")
    history = billing.member_payment_history(database, chosen.member.id)
    if history:
        st.dataframe(
            frame(history, ["receipt_number", "created_at", "transaction_type", "amount", "amount_paid",
                            "due_amount", "payment_type"]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No payments for this member yet.")


def receipts_page():
    st.header("🧾 Receipts")

    database = get_database()
    include_old = st.checkbox("Show superseded versions", value=False)
    found = receipts.list_receipts(database, include_superseded=include_old)
    st.dataframe(
        frame(found, ["id", "receipt_number", "member_name", "receipt_category", "transaction_type", "amount",
                      "amount_paid", "due_amount", "payment_type", "version_number", "is_current_version",
                      "created_at"]),
        use_container_width=True,
        hide_index=True,
    )

    st.divider()
    tab_view, tab_new = st.tabs(["Selected receipt", "New receipt"])

    with tab_view:
        if not found:
            st.caption("No receipts yet.")
        else:
            options = {f"{r.receipt_number} - {r.member_name}": r for r in found}
            r = options[st.selectbox("Receipt", list(options.keys()))]
            history = receipts.get_receipt_history(database, r.id)
            if len(history) > 1:
                st.caption("Version history")
                st.dataframe(
                    frame(history, ["version_number", "receipt_number", "amount", "amount_paid", "is_current_version",
                                    "superseded_at"]),
                    use_container_width=True,
                    hide_index=True,
                )
            if st.button("Generate PDF"):
                path = pdfs.write_receipt_pdf(r, pdf_target(), receipts.get_receipt_taxes(database, r.id))
                offer_pdf(None, str(path), key="receipt_pdf")

            if r.is_current_version:
                st.subheader("Revise receipt")
                c1, c2, c3 = st.columns(3)
                with c1:
                    amount = st.text_input("Amount", value=str(r.amount))
                with c2:
                    amount_paid = st.text_input("Amount paid", value=str(r.amount_paid))
                with c3:
                    description = st.text_input("Description", value=r.description or "")
                if st.button("Save new version", type="primary"):
                    act("createReceiptVersion", r.id,
                        {"amount": amount, "amount_paid": amount_paid, "description": description},
                        created_by=user(), success="Receipt revised.")

            confirm = st.checkbox("Confirm delete", key="receipt_del_confirm")
            if st.button("Delete receipt", disabled=not confirm):
                if act("deleteReceipt", r.id, success="Receipt deleted.") is not None:
                    st.rerun()

    with tab_new:
        m = member_picker(key="new_receipt_member")
        if m:
            tax_options = {f"{t.name} ({t.percentage}%)": t.id for t in masters.list_items(database, "tax_settings")}
            c1, c2, c3 = st.columns(3)
            with c1:
                amount = st.text_input("Amount", value="0", key="new_receipt_amount")
            with c2:
                amount_paid = st.text_input("Amount paid", value="0", key="new_receipt_paid")
            with c3:
                payment_type = payment_type_select(key="new_receipt_payment")
            description = st.text_input("Description", key="new_receipt_desc")
            chosen_taxes = st.multiselect("Taxes", list(tax_options.keys()))
            if chosen_taxes:
                breakdown = act("calculateTaxes", amount, [tax_options[t] for t in chosen_taxes])
                if breakdown:
                    st.caption(f"Tax: {breakdown['taxAmount']} | Total: {breakdown['totalAmount']}")
            if st.button("Create receipt", type="primary"):
                data = {
                    "member_id": m.id,
                    "amount": amount,
                    "amount_paid": amount_paid,
                    "payment_type": payment_type,
                    "description": description or None,
                    "created_by": user(),
                }
                if chosen_taxes:
                    act("createReceiptWithTaxes", data, [tax_options[t] for t in chosen_taxes], pdf=pdf_target(),
                        success="Receipt created.")
                else:
                    act("createReceipt", data, pdf=pdf_target(), success="Receipt created.")


def renewals_page():
    st.header("🔁 Renewals")

    m = member_picker()
    if not m:
        return
    totals = billing.member_totals(get_database(), m.id)
    st.write(
        f"Current plan: **{m.plan_type}** | Fees: **{m.membership_fees}** | End: **{m.subscription_end_date}** | "
        f"Subscription: **{m.subscription_status}** | Due: **{totals.due}**"
    )
    if totals.due > 0:
        st.warning("Clear the outstanding due before renewing.")

    col1, col2, col3 = st.columns(3)
    with col1:
        plan_type = st.selectbox("New plan type", PLAN_TYPES,
                                 index=PLAN_TYPES.index(m.plan_type) if m.plan_type in PLAN_TYPES else 0)
        custom_months = None
        if plan_type == CUSTOM_PLAN:
            custom_months = st.number_input("Months", min_value=1, value=1, step=1)
    with col2:
        fees = st.text_input("Renewal fees", value=str(m.package_fee))
        amount_paid = st.text_input("Paid now", value=fees)
    with col3:
        payment_type = payment_type_select(key="renew_payment")

    st.info(f"New subscription: **{date.today().isoformat()}** to "
            f"**{utils.calc_end_date(date.today().isoformat(), plan_type, custom_months or 1)}**")

    if st.button("Renew", type="primary"):
        result = act("renewMembership", m.id, plan_type, fees, created_by=user(), custom_months=custom_months,
                     amount_paid=amount_paid, payment_type=payment_type, pdf=pdf_target(),
                     success="Renewal completed.")
        if result:
            offer_pdf(result["receipt"], result["pdfPath"], key="renew_pdf")


def enquiries_page():
    st.header("📝 Enquiries")

    database = get_database()
    status = st.selectbox("Status", ["All"] + list(ENQUIRY_STATUSES))
    found = enquiries.list_enquiries(database, None if status == "All" else status)
    st.dataframe(
        frame(found, ["id", "enquiry_number", "name", "mobile_no", "date_of_enquiry", "status", "follow_up_date",
                      "membership_fees"]),
        use_container_width=True,
        hide_index=True,
    )

    tab_add, tab_convert = st.tabs(["Add enquiry", "Convert to member"])
    with tab_add:
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Name", key="enq_name")
            mobile_no = st.text_input("Mobile", key="enq_mobile")
            interested_in = st.multiselect("Interested in", ["gym", "cardio", "yoga", "zumba", "personal_training"])
        with c2:
            fees = st.text_input("Quoted fees", value="0", key="enq_fees")
            follow_up = st.date_input("Follow-up date", value=None, key="enq_follow")
            notes = st.text_input("Notes", key="enq_notes")
        if st.button("Save enquiry", type="primary"):
            act(
                "createEnquiry",
                {
                    "name": name,
                    "mobile_no": mobile_no,
                    "interested_in": interested_in,
                    "membership_fees": fees,
                    "follow_up_date": follow_up.isoformat() if follow_up else None,
                    "notes": notes or None,
                },
                created_by=user(),
                success="Enquiry saved.",
            )

    with tab_convert:
        open_ones = [e for e in found if e.status != "converted"]
        if not open_ones:
            st.caption("No open enquiries.")
            return
        options = {f"{e.enquiry_number} - {e.name}": e for e in open_ones}
        e = options[st.selectbox("Enquiry", list(options.keys()))]
        new_status = st.selectbox("Update status", [s for s in ENQUIRY_STATUSES if s != "converted"])
        if st.button("Update status"):
            act("updateEnquiry", e.id, {"status": new_status}, success="Enquiry updated.")
        c1, c2 = st.columns(2)
        with c1:
            plan_type = st.selectbox("Plan type", PLAN_TYPES, key="conv_plan")
            package_fee = st.text_input("Package fee", value=str(e.membership_fees), key="conv_fee")
        with c2:
            paid_amount = st.text_input("Paid now", value="0", key="conv_paid")
            payment_mode = payment_type_select("Payment mode", key="conv_payment")
        if st.button("Convert to member", type="primary"):
            act(
                "convertEnquiryToMember",
                e.id,
                {"plan_type": plan_type, "package_fee": package_fee, "paid_amount": paid_amount,
                 "payment_mode": payment_mode},
                created_by=user(),
                pdf=pdf_target(),
                success="Member created from enquiry.",
            )


def attendance_page():
    st.header("🕘 Attendance")

    database = get_database()
    tab_members, tab_staff = st.tabs(["Members", "Staff"])

    with tab_members:
        m = member_picker(key="att_member")
        if m and st.button("Check in", type="primary"):
            act("checkIn", m.id, success=f"{m.name} checked in.")
        day = st.date_input("Day", value=date.today(), key="att_day")
        visits = attendance.list_attendance(database, day=day)
        st.dataframe(
            frame(visits, ["id", "custom_member_id", "member_name", "check_in", "check_out"]),
            use_container_width=True,
            hide_index=True,
        )
        open_visits = {f"{v.member_name} (in {v.check_in[11:16]})": v.id for v in visits if not v.check_out}
        if open_visits:
            chosen = st.selectbox("Open visit", list(open_visits.keys()))
            if st.button("Check out"):
                act("checkOut", open_visits[chosen], success="Checked out.")

    with tab_staff:
        people = staff.list_staff(database, active_only=True)
        if not people:
            st.caption("No active staff.")
            return
        options = {f"{p.name} ({p.role})": p for p in people}
        p = options[st.selectbox("Staff", list(options.keys()))]
        shift = st.selectbox("Shift", ["morning", "evening", "full_day"])
        if st.button("Staff check in"):
            act("staffCheckIn", p.id, shift=shift, success=f"{p.name} checked in.")
        shifts = attendance.list_staff_attendance(database)
        st.dataframe(
            frame(shifts, ["id", "staff_name", "role", "shift", "check_in", "check_out"]),
            use_container_width=True,
            hide_index=True,
        )
        open_shifts = {f"{s.staff_name} (in {s.check_in[11:16]})": s.id for s in shifts if not s.check_out}
        if open_shifts:
            chosen = st.selectbox("Open shift", list(open_shifts.keys()))
            if st.button("Staff check out"):
                act("staffCheckOut", open_shifts[chosen], success="Checked out.")


def staff_page():
    st.header("🧑‍🏫 Staff & Payroll")

    database = get_database()
    people = staff.list_staff(database)
    st.dataframe(
        frame(people, ["id", "name", "phone", "role", "salary", "join_date", "status"]),
        use_container_width=True,
        hide_index=True,
    )

    tab_add, tab_pay, tab_slips = st.tabs(["Add staff", "Pay / revise", "Payroll receipts"])
    with tab_add:
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Name", key="staff_name")
            phone = st.text_input("Phone", key="staff_phone")
        with c2:
            role = st.selectbox("Role", STAFF_ROLES)
            salary = st.text_input("Monthly salary", value="0", key="staff_salary")
        if st.button("Add staff", type="primary"):
            act("createStaff", {"name": name, "phone": phone, "role": role, "salary": salary},
                success="Staff added.")

    with tab_pay:
        if not people:
            st.caption("No staff yet.")
        else:
            options = {f"{p.name} ({p.role}) - salary {p.salary}": p for p in people}
            p = options[st.selectbox("Staff member", list(options.keys()))]
            payment_type = payment_type_select(key="staff_payment")
            c1, c2, c3 = st.columns(3)
            with c1:
                if st.button("Pay monthly salary", type="primary"):
                    result = act("paySalary", p.id, payment_type=payment_type, created_by=user(),
                                 pdf=pdf_target(), success="Salary paid.")
                    if result:
                        st.caption(f"Slip {result['receiptNumber']}")
            with c2:
                bonus = st.text_input("Bonus amount", value="0")
                if st.button("Pay bonus"):
                    act("payBonus", p.id, bonus, payment_type=payment_type, created_by=user(), pdf=pdf_target(),
                        success="Bonus paid.")
            with c3:
                new_salary = st.text_input("New salary", value=str(p.salary))
                if st.button("Revise salary"):
                    act("updateStaff", p.id, {"salary": new_salary}, updated_by=user(), success="Salary revised.")
            confirm = st.checkbox("Confirm delete", key="staff_del_confirm")
            if st.button("Delete staff", disabled=not confirm):
                act("deleteStaff", p.id, success="Staff deleted.")

    with tab_slips:
        slips = receipts.get_staff_receipts(database)
        if slips:
            st.dataframe(
                frame(slips, ["receipt_number", "member_name", "receipt_category", "amount_paid", "payment_type",
                              "created_at"]),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.caption("No payroll receipts yet.")


def expenses_page():
    st.header("💸 Expenses")

    database = get_database()
    categories = [c.name for c in masters.list_items(database, "expense_categories")]
    found = expenses.list_expenses(database)
    st.dataframe(
        frame(found, ["id", "date", "category", "description", "amount", "created_by"]),
        use_container_width=True,
        hide_index=True,
    )

    st.subheader("Add expense")
    c1, c2, c3 = st.columns(3)
    with c1:
        category = st.selectbox("Category", categories)
    with c2:
        amount = st.text_input("Amount", value="0", key="exp_amount")
        spent_on = st.date_input("Date", value=date.today(), key="exp_date")
    with c3:
        description = st.text_input("Description", key="exp_desc")
    if st.button("Save expense", type="primary"):
        act("createExpense",
            {"category": category, "amount": amount, "date": spent_on.isoformat(), "description": description},
            created_by=user(), success="Expense saved.")

    if found:
        options = {f"{e.date} {e.category} {e.amount}": e.id for e in found}
        chosen = st.selectbox("Expense", list(options.keys()))
        if st.button("Delete expense"):
            act("deleteExpense", options[chosen], success="Expense deleted.")


def measurements_page():
    st.header("📏 Body Measurements")

    database = get_database()
    m = member_picker(key="measure_member")
    if not m:
        return
    history = measurements.list_measurements(database, m.id)
    if history:
        st.dataframe(
            frame(history, ["serial_number", "measurement_date", "weight", "height", "bmi", "bmr",
                            "fat_percentage", "chest", "waist", "hips"]),
            use_container_width=True,
            hide_index=True,
        )
        latest = history[-1]
        if latest.bmi:
            st.caption(f"Latest BMI {latest.bmi}: {utils.bmi_category(latest.bmi)}")

    st.subheader("Record measurement")
    fields = masters.list_items(database, "body_measurement_fields")
    names = [f.field_name for f in fields if f.field_name in measurements.METRIC_FIELDS] or [
        "weight", "height", "chest", "waist", "hips", "fat_percentage",
    ]
    values = {}
    cols = st.columns(3)
    for i, field_name in enumerate(names):
        with cols[i % 3]:
            values[field_name] = st.text_input(field_name.replace("_", " ").capitalize(), key=f"measure_{field_name}")
    notes = st.text_input("Notes", key="measure_notes")
    if st.button("Save measurement", type="primary"):
        act("addBodyMeasurement", m.id, {**values, "notes": notes or None}, recorded_by=user(),
            success="Measurement saved.")


MASTER_FORMS = {
    "packages": ("name", "duration_type", "price", "registration_fee", "discount", "description"),
    "tax_settings": ("name", "tax_type", "percentage", "is_inclusive", "description"),
    "occupations": ("name", "description"),
    "payment_types": ("name", "display_name", "description"),
    "body_measurement_fields": ("field_name", "display_name", "unit", "sort_order"),
    "expense_categories": ("name", "description"),
}


def masters_page():
    st.header("🗂️ Master Settings")

    database = get_database()
    kind = st.selectbox("List", list(MASTER_FORMS.keys()), format_func=lambda k: k.replace("_", " ").title())
    items = masters.list_items(database, kind, include_inactive=True)
    st.dataframe(frame(items), use_container_width=True, hide_index=True)

    st.subheader("Add")
    data = {}
    for key in MASTER_FORMS[kind]:
        if key == "duration_type":
            data[key] = st.selectbox("Duration", PLAN_TYPES, key=f"{kind}_{key}")
            if data[key] == CUSTOM_PLAN:
                data["duration_months"] = st.number_input("Months", min_value=1, value=1, key=f"{kind}_months")
        elif key == "sort_order":
            data[key] = int(st.number_input("Sort order", min_value=0, value=0, step=1, key=f"{kind}_{key}"))
        elif key == "is_inclusive":
            data[key] = st.checkbox("Inclusive (carved out of the amount)", key=f"{kind}_{key}")
        else:
            data[key] = st.text_input(key.replace("_", " ").capitalize(), key=f"{kind}_{key}")
    if st.button("Add item", type="primary"):
        act("createMasterItem", kind, data, success="Saved.")

    if items:
        st.subheader("Activate / deactivate")
        label_field = masters.KINDS[kind].name_field
        options = {f"{getattr(i, label_field)} ({'active' if i.is_active else 'inactive'})": i for i in items}
        item = options[st.selectbox("Item", list(options.keys()))]
        if st.button("Deactivate" if item.is_active else "Activate"):
            act("toggleMasterItem", kind, item.id, not item.is_active, success="Updated.")
            st.rerun()


def deleted_members_page():
    st.header("🗑️ Deleted Members")

    database = get_database()
    archived = members.list_deleted_members(database)
    if not archived:
        st.caption("No deleted members.")
        return
    st.dataframe(
        frame(archived, ["id", "custom_member_id", "name", "mobile_no", "deleted_at", "deleted_by",
                         "deletion_reason"]),
        use_container_width=True,
        hide_index=True,
    )
    options = {f"{a.name} #{a.custom_member_id} (deleted {a.deleted_at[:10]})": a for a in archived}
    a = options[st.selectbox("Archived member", list(options.keys()))]
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Restore", type="primary"):
            if act("restoreDeletedMember", a.id, window_days=get_settings().expiring_soon_days,
                   success="Member restored.") is not None:
                st.rerun()
    with c2:
        confirm = st.checkbox("Confirm permanent delete")
        if st.button("Delete permanently", disabled=not confirm):
            if act("permanentlyDeleteMember", a.id, success="Archive entry removed.") is not None:
                st.rerun()


def reminders_page():
    st.header("⏰ Reminders & Messages")

    database = get_database()
    settings = get_settings()

    st.subheader("Queue messages")
    c1, c2, c3, c4, c5 = st.columns(5)
    with c1:
        if st.button("Expiring soon"):
            queued = act("queueExpiryReminders", days=settings.expiring_soon_days, gym_name=settings.gym_name)
            if queued is not None:
                st.success(f"{len(queued)} queued.")
    with c2:
        if st.button("Expired (renewal)"):
            queued = act("queueRenewalReminders", gym_name=settings.gym_name)
            if queued is not None:
                st.success(f"{len(queued)} queued.")
    with c3:
        if st.button(f"Absent {settings.attendance_reminder_days}+ days"):
            queued = act("queueAttendanceReminders", days=settings.attendance_reminder_days,
                         gym_name=settings.gym_name)
            if queued is not None:
                st.success(f"{len(queued)} queued.")
    with c4:
        if st.button("Dues"):
            queued = act("queueDueReminders", gym_name=settings.gym_name)
            if queued is not None:
                st.success(f"{len(queued)} queued.")
    with c5:
        if st.button("Birthdays"):
            queued = act("queueBirthdayMessages", gym_name=settings.gym_name)
            if queued is not None:
                st.success(f"{len(queued)} queued.")

    st.divider()
    status = st.selectbox("Status", ["All"] + list(MESSAGE_STATUSES))
    queue = reminders.list_messages(database, None if status == "All" else status)
    st.dataframe(
        frame(queue, ["id", "member_name", "member_phone", "message_type", "status", "retry_count",
                      "message_content", "created_at"]),
        use_container_width=True,
        hide_index=True,
    )
    if queue:
        options = {f"#{q.id} {q.member_name} ({q.message_type}, {q.status})": q for q in queue}
        q = options[st.selectbox("Message", list(options.keys()))]
        c1, c2, c3 = st.columns(3)
        with c1:
            if st.button("Mark sent"):
                act("markMessageSent", q.id, success="Marked sent.")
        with c2:
            error = st.text_input("Failure reason")
            if st.button("Mark failed"):
                act("markMessageFailed", q.id, error or "Delivery failed", success="Marked failed.")
        with c3:
            if st.button("Retry", disabled=q.status != "failed"):
                act("retryMessage", q.id, success="Queued again.")

    st.divider()
    st.subheader("Templates")
    templates = {t.message_type: t for t in reminders.list_templates(database)}
    t = templates[st.selectbox("Message type", list(templates.keys()))]
    content = st.text_area("Template", value=t.template_content, key=f"tpl_{t.message_type}")
    active = st.checkbox("Active", value=t.is_active, key=f"tpl_active_{t.message_type}")
    if st.button("Save template"):
        act("updateTemplate", t.message_type, content, is_active=active, success="Template saved.")


def reports_page():
    st.header("📈 Reports")

    database = get_database()

    st.subheader("Export members to CSV")
    st.download_button(
        "Download members.csv",
        data=reports.export_members_csv(database),
        file_name="members.csv",
        mime="text/csv",
    )

    st.subheader("Export receipts to CSV")
    st.download_button(
        "Download receipts.csv",
        data=reports.export_receipts_csv(database),
        file_name="receipts.csv",
        mime="text/csv",
    )

    st.divider()

    today = date.today()
    c1, c2 = st.columns(2)
    with c1:
        month = st.number_input("Month", min_value=1, max_value=12, value=today.month)
    with c2:
        year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year)
    report = reports.monthly_transaction_report(database, int(month), int(year))
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Member income", f"{report.member_income:,.2f}", f"{report.receipt_count} receipts", delta_color="off")
    m2.metric("Expenses", f"{report.expenses:,.2f}")
    m3.metric("Payroll", f"{report.payroll:,.2f}")
    m4.metric("Net", f"{report.net:,.2f}")

    st.caption("Expenses by category")
    st.dataframe(expenses.monthly_expense_report(database, int(month), int(year)), use_container_width=True,
                 hide_index=True)

    st.divider()

    st.subheader("Revenue summary by month")
    st.dataframe(reports.revenue_summary_by_month(database), use_container_width=True, hide_index=True)

    st.subheader("Tax collection")
    c1, c2 = st.columns(2)
    with c1:
        start = st.date_input("From", value=today.replace(day=1))
    with c2:
        end = st.date_input("To", value=today)
    st.dataframe(taxes.tax_collection_report(database, start, end), use_container_width=True, hide_index=True)


def settings_page():
    st.header("⚙️ Settings")

    database = get_database()

    st.subheader("Change password")
    password_form("settings")

    if st.session_state.role == "admin":
        st.divider()
        st.subheader("Users")
        st.dataframe(frame(auth.list_users(database), ["username", "role", "full_name", "is_active"]),
                     use_container_width=True, hide_index=True)
        c1, c2, c3 = st.columns(3)
        with c1:
            username = st.text_input("Username", key="new_user")
        with c2:
            password = st.text_input("Password", type="password", key="new_user_pw")
        with c3:
            role = st.selectbox("Role", ["receptionist", "trainer", "admin"])
        if st.button("Create user"):
            act("createUser", username, password, role=role, success="User created.")

    st.divider()

    st.subheader("Maintenance")
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Recalculate all due amounts"):
            count = act("refreshAllMemberDueAmounts")
            if count is not None:
                st.success(f"Recalculated {count} members.")
    with c2:
        if st.button("Refresh subscription statuses"):
            counts = act("updateAllSubscriptionStatuses", window_days=get_settings().expiring_soon_days)
            if counts is not None:
                st.success(f"Expired {counts['expired']}, expiring soon {counts['expiringSoon']}, "
                           f"active {counts['active']}.")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert 3 sample members, a trainer, an enquiry and an expense (adds new rows each run).")
    if st.button("Insert sample data"):
        sample_data.insert_sample_data(database)
        st.success("Sample data inserted.")
        st.rerun()


PAGES = {
    "Dashboard": dashboard_page,
    "Members": members_page,
    "Due Payments": due_payments_page,
    "Receipts": receipts_page,
    "Renewals": renewals_page,
    "Enquiries": enquiries_page,
    "Attendance": attendance_page,
    "Staff": staff_page,
    "Expenses": expenses_page,
    "Measurements": measurements_page,
    "Master Settings": masters_page,
    "Deleted Members": deleted_members_page,
    "Reminders": reminders_page,
    "Reports": reports_page,
    "Settings": settings_page,
}


def main_app():
    st.sidebar.title("🏋️ Gym System")
    st.sidebar.caption(f"Logged in as: {st.session_state.username} ({st.session_state.role})")

    pages = list(PAGES.keys())
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    PAGES[st.session_state.page]()


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    # Force password change on first login after DB creation
    if db.is_force_password_change(get_database()):
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
