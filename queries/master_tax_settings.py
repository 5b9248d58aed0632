"""SQL for master_tax_settings."""

INSERT = """
INSERT INTO master_tax_settings(
    name, tax_type, percentage, is_inclusive, description, is_active, created_at, updated_at
) VALUES (
    :name, :tax_type, :percentage, :is_inclusive, :description, 1, :created_at, :updated_at
)
"""

UPDATE = """
UPDATE master_tax_settings SET
    name = :name, tax_type = :tax_type, percentage = :percentage, is_inclusive = :is_inclusive,
    description = :description, is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_tax_settings WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_tax_settings ORDER BY name"

SELECT_ACTIVE = "SELECT * FROM master_tax_settings WHERE is_active = 1 ORDER BY name"

SET_ACTIVE = "UPDATE master_tax_settings SET is_active = ?, updated_at = ? WHERE id = ?"
