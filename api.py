"""
api.py
Request/response bridge between the UI and the service layer.

Every operation is called by name and answers {"success": True, "data": ...}
or {"success": False, "error": "..."}. Payload keys are camelCase on the
outside and snake_case inside.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import re
import sqlite3
from datetime import date, datetime
from decimal import Decimal

import pandas as pd

import auth
import db as storage
from errors import GymError
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
    staff,
    taxes,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def to_payload(value):
    """Service results to plain camelCase data (Decimal as string, dates ISO)."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_payload(dataclasses.asdict(value))
    if isinstance(value, pd.DataFrame):
        return to_payload(value.to_dict("records"))
    if isinstance(value, dict):
        return {to_camel(str(k)): to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def from_payload(value):
    """camelCase dict keys to snake_case, recursively. Values are left alone."""
    if isinstance(value, dict):
        return {to_snake(str(k)): from_payload(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_payload(v) for v in value]
    return value


# Top-level service parameters that take date / datetime objects.
DATE_PARAMS = frozenset({"as_of", "day", "end", "start", "today"})
DATETIME_PARAMS = frozenset({"when"})


def coerce_dates(handler, args: list, kwargs: dict) -> tuple[list, dict]:
    """ISO strings passed for date parameters become date / datetime objects."""
    bound = inspect.signature(handler).bind_partial(None, *args, **kwargs)
    for name, value in bound.arguments.items():
        if not isinstance(value, str) or not value:
            continue
        if name in DATE_PARAMS:
            bound.arguments[name] = date.fromisoformat(value)
        elif name in DATETIME_PARAMS:
            bound.arguments[name] = datetime.fromisoformat(value)
    return list(bound.args[1:]), bound.kwargs


def _calculate_taxes(database: storage.Database, base_amount, tax_setting_ids: list[int]):
    return taxes.calculate_tax_amounts(base_amount, masters.tax_settings_by_ids(database, tax_setting_ids))


def _login(database: storage.Database, username: str, password: str):
    user = auth.login(database, username, password)
    if user is None:
        raise GymError("Invalid username or password.")
    return {"user": user, "force_password_change": storage.is_force_password_change(database)}


OPERATIONS = {
    # members
    "getAllMembers": members.list_members,
    "getMemberById": members.get_member,
    "findMembersByMobile": members.find_members_by_mobile,
    "createMember": members.create_member,
    "updateMember": members.update_member,
    "deleteMember": members.delete_member,
    "savePartialMember": members.save_partial_member,
    "completePartialMember": members.complete_partial_member,
    "getPartialMembers": members.get_partial_members,
    "isPartialMember": members.is_partial_member,
    "generateMemberNumber": members.generate_member_number,
    "isMemberNumberTaken": members.is_member_number_taken,
    "updateMemberNumber": members.update_member_number,
    "getDeletedMembers": members.list_deleted_members,
    "restoreDeletedMember": members.restore_deleted_member,
    "permanentlyDeleteMember": members.permanently_delete_member,
    # billing
    "getAllMembersWithDueAmounts": billing.members_with_due_amounts,
    "getMemberDueAmount": billing.member_totals,
    "payMemberDueAmount": billing.record_payment,
    "recalculateMemberTotals": billing.recalculate_member_totals,
    "refreshAllMemberDueAmounts": billing.refresh_all_member_due_amounts,
    "updateAllSubscriptionStatuses": billing.update_subscription_statuses,
    "updateMemberSubscriptionStatus": billing.update_member_subscription_status,
    "renewMembership": billing.renew_membership,
    "getAllInvoices": billing.list_invoices,
    "getMemberPaymentHistory": billing.member_payment_history,
    # receipts
    "getAllReceipts": receipts.list_receipts,
    "getReceiptById": receipts.get_receipt,
    "getReceiptsByMember": receipts.receipts_for_member,
    "getReceiptsByDateRange": receipts.receipts_between,
    "createReceipt": receipts.create_receipt,
    "createReceiptWithTaxes": receipts.create_receipt_with_taxes,
    "createReceiptVersion": receipts.create_receipt_version,
    "getReceiptHistory": receipts.get_receipt_history,
    "getReceiptTaxes": receipts.get_receipt_taxes,
    "deleteReceipt": receipts.delete_receipt,
    "getStaffReceipts": receipts.get_staff_receipts,
    "calculateTaxes": _calculate_taxes,
    # enquiries
    "getAllEnquiries": enquiries.list_enquiries,
    "getEnquiryById": enquiries.get_enquiry,
    "getFollowUpsDue": enquiries.follow_ups_due,
    "createEnquiry": enquiries.create_enquiry,
    "updateEnquiry": enquiries.update_enquiry,
    "deleteEnquiry": enquiries.delete_enquiry,
    "convertEnquiryToMember": enquiries.convert_enquiry_to_member,
    # attendance
    "checkIn": attendance.check_in,
    "checkOut": attendance.check_out,
    "getAttendance": attendance.list_attendance,
    "getAttendanceByDateRange": attendance.attendance_between,
    "staffCheckIn": attendance.staff_check_in,
    "staffCheckOut": attendance.staff_check_out,
    "getStaffAttendance": attendance.list_staff_attendance,
    # staff
    "getAllStaff": staff.list_staff,
    "getStaffById": staff.get_staff,
    "createStaff": staff.create_staff,
    "updateStaff": staff.update_staff,
    "deleteStaff": staff.delete_staff,
    "paySalary": staff.pay_salary,
    "payBonus": staff.pay_bonus,
    # expenses
    "getAllExpenses": expenses.list_expenses,
    "createExpense": expenses.create_expense,
    "updateExpense": expenses.update_expense,
    "deleteExpense": expenses.delete_expense,
    "getMonthlyExpenseReport": expenses.monthly_expense_report,
    # body measurements
    "getBodyMeasurements": measurements.list_measurements,
    "addBodyMeasurement": measurements.add_measurement,
    "updateBodyMeasurement": measurements.update_measurement,
    "deleteBodyMeasurement": measurements.delete_measurement,
    # master settings
    "getMasterItems": masters.list_items,
    "getMasterItem": masters.get_item,
    "createMasterItem": masters.create_item,
    "updateMasterItem": masters.update_item,
    "toggleMasterItem": masters.set_item_active,
    "deleteMasterItem": masters.deactivate_item,
    # reports
    "getDashboardSummary": reports.dashboard_summary,
    "getMonthlyTransactionReport": reports.monthly_transaction_report,
    "getRevenueSummary": reports.revenue_summary_by_month,
    "getExpiringMembers": reports.members_expiring,
    "getTaxCollectionReport": taxes.tax_collection_report,
    # messages
    "getTemplates": reminders.list_templates,
    "updateTemplate": reminders.update_template,
    "getMessages": reminders.list_messages,
    "queueReceiptMessage": reminders.queue_receipt_message,
    "queueWelcomeMessage": reminders.queue_welcome_message,
    "queueExpiryReminders": reminders.queue_expiry_reminders,
    "queueRenewalReminders": reminders.queue_renewal_reminders,
    "queueAttendanceReminders": reminders.queue_attendance_reminders,
    "queueDueReminders": reminders.queue_due_reminders,
    "queueBirthdayMessages": reminders.queue_birthday_messages,
    "markMessageSent": reminders.mark_message_sent,
    "markMessageFailed": reminders.mark_message_failed,
    "retryMessage": reminders.retry_message,
    "deleteMessage": reminders.delete_message,
    # users
    "login": _login,
    "changePassword": auth.change_password,
    "createUser": auth.create_user,
    "getUsers": auth.list_users,
    "setUserActive": auth.set_user_active,
}


def call(database: storage.Database, operation: str, *args, **kwargs) -> dict:
    """
    Run one named operation. Dict arguments and keyword names may be
    camelCase. Errors come back as {"success": False, "error": message}.
    """
    handler = OPERATIONS.get(operation)
    if handler is None:
        return {"success": False, "error": f"Unknown operation: {operation}"}
    args = [from_payload(a) for a in args]
    kwargs = {to_snake(k): from_payload(v) for k, v in kwargs.items()}
    try:
        args, kwargs = coerce_dates(handler, args, kwargs)
        result = handler(database, *args, **kwargs)
    except GymError as e:
        logger.info("%s rejected: %s", operation, e)
        return {"success": False, "error": str(e)}
    except sqlite3.Error as e:
        logger.exception("%s failed in the database", operation)
        return {"success": False, "error": f"Database error: {e}"}
    except (TypeError, ValueError) as e:
        logger.warning("%s called with bad arguments: %s", operation, e)
        return {"success": False, "error": f"Invalid request: {e}"}
    return {"success": True, "data": to_payload(result)}
