"""SQL for application users."""

INSERT = """
INSERT INTO users(username, password_hash, role, full_name, email, phone, is_active, created_at)
VALUES(:username, :password_hash, :role, :full_name, :email, :phone, 1, :created_at)
"""

SELECT_BY_USERNAME = "SELECT * FROM users WHERE username = ?"

SELECT_ALL = "SELECT * FROM users ORDER BY username"

UPDATE_PASSWORD = "UPDATE users SET password_hash = ? WHERE username = ?"

SET_ACTIVE = "UPDATE users SET is_active = ? WHERE username = ?"
