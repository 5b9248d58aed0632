"""SQL for staff attendance."""

INSERT = """
INSERT INTO staff_attendance(staff_id, staff_name, role, shift, check_in, check_out, date, created_at)
VALUES(:staff_id, :staff_name, :role, :shift, :check_in, NULL, :date, :created_at)
"""

SELECT_BY_ID = "SELECT * FROM staff_attendance WHERE id = ?"

SELECT_OPEN_FOR_STAFF = """
SELECT * FROM staff_attendance WHERE staff_id = ? AND date = ? AND check_out IS NULL
ORDER BY id DESC LIMIT 1
"""

CHECK_OUT = "UPDATE staff_attendance SET check_out = ? WHERE id = ?"

SELECT_BY_DATE = "SELECT * FROM staff_attendance WHERE date = ? ORDER BY check_in DESC"

SELECT_BY_STAFF = "SELECT * FROM staff_attendance WHERE staff_id = ? ORDER BY date DESC, check_in DESC"
