"""SQL for the deleted_members archive."""

INSERT = """
INSERT INTO deleted_members(
    original_member_id, custom_member_id, name, mobile_no, email, member_data,
    original_created_at, original_updated_at, deleted_at, deleted_by, deletion_reason
) VALUES (
    :original_member_id, :custom_member_id, :name, :mobile_no, :email, :member_data,
    :original_created_at, :original_updated_at, :deleted_at, :deleted_by, :deletion_reason
)
"""

SELECT_ALL = "SELECT * FROM deleted_members ORDER BY deleted_at DESC, id DESC"

SELECT_BY_ID = "SELECT * FROM deleted_members WHERE id = ?"

DELETE = "DELETE FROM deleted_members WHERE id = ?"
