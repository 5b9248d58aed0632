"""SQL for the receipts table."""

INSERT = """
INSERT INTO receipts(
    receipt_number, invoice_id, member_id, member_name, custom_member_id, amount,
    amount_paid, due_amount, payment_type, description, receipt_category,
    transaction_type, subscription_start_date, subscription_end_date, plan_type,
    payment_mode, mobile_no, email, package_fee, registration_fee, discount, cgst,
    sigst, created_at, created_by, original_receipt_id, version_number,
    is_current_version
) VALUES (
    :receipt_number, :invoice_id, :member_id, :member_name, :custom_member_id, :amount,
    :amount_paid, :due_amount, :payment_type, :description, :receipt_category,
    :transaction_type, :subscription_start_date, :subscription_end_date, :plan_type,
    :payment_mode, :mobile_no, :email, :package_fee, :registration_fee, :discount, :cgst,
    :sigst, :created_at, :created_by, :original_receipt_id, :version_number,
    :is_current_version
)
"""

SELECT_BY_ID = "SELECT * FROM receipts WHERE id = ?"

SELECT_BY_NUMBER = "SELECT * FROM receipts WHERE receipt_number = ?"

SELECT_ALL = "SELECT * FROM receipts WHERE is_current_version = 1 ORDER BY id DESC"

SELECT_ALL_VERSIONS = "SELECT * FROM receipts ORDER BY id DESC"

SELECT_BY_MEMBER = "SELECT * FROM receipts WHERE member_id = ? ORDER BY id DESC"

SELECT_MEMBER_CATEGORY = """
SELECT * FROM receipts
WHERE member_id = ? AND (receipt_category IS NULL OR receipt_category = 'member')
  AND is_current_version = 1
ORDER BY id ASC
"""

SELECT_HISTORY = """
SELECT * FROM receipts
WHERE id = :root OR original_receipt_id = :root
ORDER BY version_number ASC, id ASC
"""

SELECT_STAFF = """
SELECT * FROM receipts
WHERE receipt_category IN ('staff_salary', 'staff_bonus', 'staff_salary_update')
ORDER BY id DESC
"""

SELECT_STAFF_BY_NAME = """
SELECT * FROM receipts
WHERE receipt_category IN ('staff_salary', 'staff_bonus', 'staff_salary_update') AND member_name = ?
ORDER BY id DESC
"""

SELECT_BY_DATE_RANGE = """
SELECT * FROM receipts
WHERE is_current_version = 1 AND date(created_at) BETWEEN ? AND ?
ORDER BY created_at DESC, id DESC
"""

# A billing cycle starts at the member's latest current renewal receipt.
# Versions share their root's position, so edits never move a receipt between cycles.
SELECT_CYCLE_ANCHOR = """
SELECT COALESCE(MAX(COALESCE(original_receipt_id, id)), 0) AS anchor FROM receipts
WHERE member_id = ? AND is_current_version = 1 AND transaction_type = 'renewal'
  AND (receipt_category IS NULL OR receipt_category = 'member')
"""

SUM_PAID_IN_CYCLE = """
SELECT COALESCE(SUM(amount_paid), 0) AS paid FROM receipts
WHERE member_id = ? AND is_current_version = 1
  AND (receipt_category IS NULL OR receipt_category = 'member')
  AND COALESCE(original_receipt_id, id) >= ?
"""

SUM_PAID_FOR_INVOICE = """
SELECT COALESCE(SUM(amount_paid), 0) AS paid FROM receipts
WHERE invoice_id = ? AND is_current_version = 1
  AND (receipt_category IS NULL OR receipt_category = 'member')
"""

# Member receipts of the current cycle written without an invoice.
ATTACH_CYCLE_TO_INVOICE = """
UPDATE receipts SET invoice_id = :invoice_id
WHERE member_id = :member_id AND invoice_id IS NULL
  AND (receipt_category IS NULL OR receipt_category = 'member')
  AND COALESCE(original_receipt_id, id) >= :anchor
"""

MARK_SUPERSEDED = "UPDATE receipts SET is_current_version = 0, superseded_at = ? WHERE id = ?"

MAX_VERSION = """
SELECT MAX(version_number) AS v FROM receipts WHERE id = :root OR original_receipt_id = :root
"""

SELECT_CURRENT_IN_CHAIN = """
SELECT * FROM receipts
WHERE (id = :root OR original_receipt_id = :root) AND is_current_version = 1
"""

# Identity fields copied onto receipts when the member profile changes.
UPDATE_MEMBER_IDENTITY = """
UPDATE receipts SET
    member_name = :name, custom_member_id = :custom_member_id,
    mobile_no = :mobile_no, email = :email
WHERE member_id = :member_id AND (receipt_category IS NULL OR receipt_category = 'member')
"""

UPDATE_MEMBER_NUMBER = "UPDATE receipts SET custom_member_id = ? WHERE member_id = ?"

DELETE = "DELETE FROM receipts WHERE id = ?"

MONTHLY_MEMBER_INCOME = """
SELECT COALESCE(SUM(amount_paid), 0) AS total, COUNT(*) AS n FROM receipts
WHERE is_current_version = 1
  AND (receipt_category IS NULL OR receipt_category = 'member')
  AND strftime('%Y-%m', created_at) = ?
"""

MONTHLY_PAYROLL = """
SELECT COALESCE(SUM(amount_paid), 0) AS total FROM receipts
WHERE is_current_version = 1
  AND receipt_category IN ('staff_salary', 'staff_bonus')
  AND strftime('%Y-%m', created_at) = ?
"""

REVENUE_BY_MONTH = """
SELECT strftime('%Y-%m', created_at) AS month, SUM(amount_paid) AS revenue
FROM receipts
WHERE is_current_version = 1 AND (receipt_category IS NULL OR receipt_category = 'member')
GROUP BY strftime('%Y-%m', created_at)
ORDER BY month DESC
"""
