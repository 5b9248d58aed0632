"""SQL for master_payment_types."""

INSERT = """
INSERT INTO master_payment_types(name, display_name, description, is_active, created_at, updated_at)
VALUES(:name, :display_name, :description, 1, :created_at, :updated_at)
"""

UPDATE = """
UPDATE master_payment_types SET name = :name, display_name = :display_name,
    description = :description, is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_payment_types WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_payment_types ORDER BY id"

SELECT_ACTIVE = "SELECT * FROM master_payment_types WHERE is_active = 1 ORDER BY id"

SET_ACTIVE = "UPDATE master_payment_types SET is_active = ?, updated_at = ? WHERE id = ?"
