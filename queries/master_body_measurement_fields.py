"""SQL for master_body_measurement_fields."""

INSERT = """
INSERT INTO master_body_measurement_fields(
    field_name, display_name, field_type, unit, is_required, sort_order, is_active,
    created_at, updated_at
) VALUES (
    :field_name, :display_name, :field_type, :unit, :is_required, :sort_order, 1,
    :created_at, :updated_at
)
"""

UPDATE = """
UPDATE master_body_measurement_fields SET
    field_name = :field_name, display_name = :display_name, field_type = :field_type,
    unit = :unit, is_required = :is_required, sort_order = :sort_order,
    is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_body_measurement_fields WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_body_measurement_fields ORDER BY sort_order, id"

SELECT_ACTIVE = "SELECT * FROM master_body_measurement_fields WHERE is_active = 1 ORDER BY sort_order, id"

SET_ACTIVE = "UPDATE master_body_measurement_fields SET is_active = ?, updated_at = ? WHERE id = ?"
