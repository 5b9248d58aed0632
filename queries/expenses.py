"""SQL for the expenses table."""

INSERT = """
INSERT INTO expenses(category, description, amount, date, created_by, receipt, created_at)
VALUES(:category, :description, :amount, :date, :created_by, :receipt, :created_at)
"""

UPDATE = """
UPDATE expenses SET category = :category, description = :description, amount = :amount,
    date = :date, receipt = :receipt
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM expenses WHERE id = ?"

SELECT_ALL = "SELECT * FROM expenses ORDER BY date DESC, id DESC"

SELECT_BY_CATEGORY = "SELECT * FROM expenses WHERE category = ? ORDER BY date DESC, id DESC"

SELECT_BY_DATE_RANGE = "SELECT * FROM expenses WHERE date BETWEEN ? AND ? ORDER BY date DESC, id DESC"

DELETE = "DELETE FROM expenses WHERE id = ?"

MONTHLY_TOTAL = "SELECT COALESCE(SUM(amount), 0) AS total FROM expenses WHERE strftime('%Y-%m', date) = ?"

MONTHLY_BY_CATEGORY = """
SELECT category, COUNT(*) AS entries, SUM(amount) AS total
FROM expenses
WHERE strftime('%Y-%m', date) = ?
GROUP BY category
ORDER BY total DESC
"""
