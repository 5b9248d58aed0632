"""SQL for receipt_tax_mapping (one row per tax applied to a receipt)."""

INSERT = """
INSERT INTO receipt_tax_mapping(
    receipt_id, tax_setting_id, tax_name, tax_type, tax_percentage, is_inclusive,
    base_amount, tax_amount, created_at
) VALUES (
    :receipt_id, :tax_setting_id, :tax_name, :tax_type, :tax_percentage, :is_inclusive,
    :base_amount, :tax_amount, :created_at
)
"""

SELECT_BY_RECEIPT = "SELECT * FROM receipt_tax_mapping WHERE receipt_id = ? ORDER BY id"

COLLECTION_REPORT = """
SELECT t.tax_name, t.tax_type, t.tax_percentage, t.is_inclusive,
       COUNT(DISTINCT t.receipt_id) AS receipts,
       SUM(t.base_amount) AS base_amount, SUM(t.tax_amount) AS tax_amount
FROM receipt_tax_mapping t
JOIN receipts r ON r.id = t.receipt_id
WHERE r.is_current_version = 1 AND date(r.created_at) BETWEEN ? AND ?
GROUP BY t.tax_name, t.tax_type, t.tax_percentage, t.is_inclusive
ORDER BY t.tax_name
"""

COLLECTION_REPORT_BY_TYPE = """
SELECT t.tax_name, t.tax_type, t.tax_percentage, t.is_inclusive,
       COUNT(DISTINCT t.receipt_id) AS receipts,
       SUM(t.base_amount) AS base_amount, SUM(t.tax_amount) AS tax_amount
FROM receipt_tax_mapping t
JOIN receipts r ON r.id = t.receipt_id
WHERE r.is_current_version = 1 AND date(r.created_at) BETWEEN ? AND ? AND t.tax_type = ?
GROUP BY t.tax_name, t.tax_type, t.tax_percentage, t.is_inclusive
ORDER BY t.tax_name
"""
