"""SQL for member attendance."""

INSERT = """
INSERT INTO attendance(member_id, custom_member_id, member_name, check_in, check_out, date, profile_image, created_at)
VALUES(:member_id, :custom_member_id, :member_name, :check_in, NULL, :date, :profile_image, :created_at)
"""

SELECT_BY_ID = "SELECT * FROM attendance WHERE id = ?"

SELECT_OPEN_FOR_MEMBER = """
SELECT * FROM attendance WHERE member_id = ? AND date = ? AND check_out IS NULL
ORDER BY id DESC LIMIT 1
"""

CHECK_OUT = "UPDATE attendance SET check_out = ? WHERE id = ?"

SELECT_BY_DATE = "SELECT * FROM attendance WHERE date = ? ORDER BY check_in DESC"

SELECT_BY_MEMBER = "SELECT * FROM attendance WHERE member_id = ? ORDER BY date DESC, check_in DESC"

SELECT_BY_DATE_RANGE = "SELECT * FROM attendance WHERE date BETWEEN ? AND ? ORDER BY date DESC, check_in DESC"

UPDATE_MEMBER_NUMBER = "UPDATE attendance SET custom_member_id = ? WHERE member_id = ?"

UPDATE_MEMBER_NAME = "UPDATE attendance SET member_name = ? WHERE member_id = ?"

DELETE_BY_MEMBER = "DELETE FROM attendance WHERE member_id = ?"

# Active members without a visit since the cutoff date (never-seen members included).
SELECT_ABSENT_ACTIVE_MEMBERS = """
SELECT m.* FROM members m
WHERE m.status = 'active'
  AND NOT EXISTS (SELECT 1 FROM attendance a WHERE a.member_id = m.id AND a.date >= ?)
ORDER BY m.name
"""
