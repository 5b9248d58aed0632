"""SQL for master_expense_categories."""

INSERT = """
INSERT INTO master_expense_categories(name, description, is_active, created_at, updated_at)
VALUES(:name, :description, 1, :created_at, :updated_at)
"""

UPDATE = """
UPDATE master_expense_categories SET name = :name, description = :description,
    is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_expense_categories WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_expense_categories ORDER BY name"

SELECT_ACTIVE = "SELECT * FROM master_expense_categories WHERE is_active = 1 ORDER BY name"

SET_ACTIVE = "UPDATE master_expense_categories SET is_active = ?, updated_at = ? WHERE id = ?"
