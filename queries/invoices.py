"""SQL for the invoices table."""

INSERT = """
INSERT INTO invoices(
    invoice_number, member_id, member_name, registration_fee, package_fee, discount,
    total_amount, paid_amount, status, due_date, created_at, updated_at
) VALUES (
    :invoice_number, :member_id, :member_name, :registration_fee, :package_fee, :discount,
    :total_amount, :paid_amount, :status, :due_date, :created_at, :updated_at
)
"""

SELECT_BY_ID = "SELECT * FROM invoices WHERE id = ?"

SELECT_ALL = "SELECT * FROM invoices ORDER BY id DESC"

SELECT_BY_MEMBER = "SELECT * FROM invoices WHERE member_id = ? ORDER BY id DESC"

COUNT_OPEN_BY_MEMBER = "SELECT COUNT(*) AS c FROM invoices WHERE member_id = ? AND status != 'paid'"

UPDATE_PAYMENT = "UPDATE invoices SET paid_amount = ?, status = ?, updated_at = ? WHERE id = ?"

UPDATE_MEMBER_NAME = "UPDATE invoices SET member_name = ? WHERE member_id = ?"

SELECT_FIRST_BY_MEMBER = "SELECT * FROM invoices WHERE member_id = ? ORDER BY id ASC LIMIT 1"

UPDATE_TOTAL = "UPDATE invoices SET total_amount = ?, updated_at = ? WHERE id = ?"
