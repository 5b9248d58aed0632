"""SQL for body_measurements."""

INSERT = """
INSERT INTO body_measurements(
    member_id, custom_member_id, member_name, serial_number, measurement_date, weight,
    height, age, neck, chest, arms, fore_arms, wrist, tummy, waist, hips, thighs, calf,
    fat_percentage, bmi, bmr, vf, notes, recorded_by, created_at
) VALUES (
    :member_id, :custom_member_id, :member_name, :serial_number, :measurement_date, :weight,
    :height, :age, :neck, :chest, :arms, :fore_arms, :wrist, :tummy, :waist, :hips, :thighs, :calf,
    :fat_percentage, :bmi, :bmr, :vf, :notes, :recorded_by, :created_at
)
"""

UPDATE = """
UPDATE body_measurements SET
    measurement_date = :measurement_date, weight = :weight, height = :height, age = :age,
    neck = :neck, chest = :chest, arms = :arms, fore_arms = :fore_arms, wrist = :wrist,
    tummy = :tummy, waist = :waist, hips = :hips, thighs = :thighs, calf = :calf,
    fat_percentage = :fat_percentage, bmi = :bmi, bmr = :bmr, vf = :vf, notes = :notes
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM body_measurements WHERE id = ?"

SELECT_BY_MEMBER = """
SELECT * FROM body_measurements WHERE member_id = ? ORDER BY serial_number ASC
"""

NEXT_SERIAL = "SELECT COALESCE(MAX(serial_number), 0) + 1 AS n FROM body_measurements WHERE member_id = ?"

UPDATE_MEMBER_NUMBER = "UPDATE body_measurements SET custom_member_id = ? WHERE member_id = ?"

UPDATE_MEMBER_NAME = "UPDATE body_measurements SET member_name = ? WHERE member_id = ?"

DELETE = "DELETE FROM body_measurements WHERE id = ?"

DELETE_BY_MEMBER = "DELETE FROM body_measurements WHERE member_id = ?"
