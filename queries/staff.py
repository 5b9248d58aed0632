"""SQL for the staff table."""

INSERT = """
INSERT INTO staff(
    name, email, phone, address, role, salary, join_date, status, specialization,
    emergency_contact, date_of_birth, profile_image, created_at, updated_at
) VALUES (
    :name, :email, :phone, :address, :role, :salary, :join_date, :status, :specialization,
    :emergency_contact, :date_of_birth, :profile_image, :created_at, :updated_at
)
"""

UPDATE = """
UPDATE staff SET
    name = :name, email = :email, phone = :phone, address = :address, role = :role,
    salary = :salary, join_date = :join_date, status = :status,
    specialization = :specialization, emergency_contact = :emergency_contact,
    date_of_birth = :date_of_birth, profile_image = :profile_image, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM staff WHERE id = ?"

SELECT_ALL = "SELECT * FROM staff ORDER BY name"

SELECT_ACTIVE = "SELECT * FROM staff WHERE status = 'active' ORDER BY name"

DELETE = "DELETE FROM staff WHERE id = ?"
