"""SQL for master_occupations."""

INSERT = """
INSERT INTO master_occupations(name, description, is_active, created_at, updated_at)
VALUES(:name, :description, 1, :created_at, :updated_at)
"""

UPDATE = """
UPDATE master_occupations SET name = :name, description = :description,
    is_active = :is_active, updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM master_occupations WHERE id = ?"

SELECT_ALL = "SELECT * FROM master_occupations ORDER BY name"

SELECT_ACTIVE = "SELECT * FROM master_occupations WHERE is_active = 1 ORDER BY name"

SET_ACTIVE = "UPDATE master_occupations SET is_active = ?, updated_at = ? WHERE id = ?"
