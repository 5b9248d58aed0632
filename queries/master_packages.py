"""SQL for master_packages."""

INSERT = """
INSERT INTO master_packages(
    name, duration_type, duration_months, price, registration_fee, discount, description,
    is_active, created_at, updated_at
) VALUES (
    :name, :duration_type, :duration_months, :price, :registration_fee, :discount, :description,
    1, :created_at, :updated_at
)
"""

UPDATE = """
UPDATE master_packages SET
    name = :name, duration_type = :duration_type, duration_months = :duration_months,
    price = :price, registration_fee = :registration_fee, discount = :discount,
    description = :description, is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_packages WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_packages ORDER BY duration_months, name"

SELECT_ACTIVE = "SELECT * FROM master_packages WHERE is_active = 1 ORDER BY duration_months, name"

SET_ACTIVE = "UPDATE master_packages SET is_active = ?, updated_at = ? WHERE id = ?"
