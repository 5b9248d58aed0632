"""SQL for the outgoing WhatsApp message queue."""

INSERT = """
INSERT INTO whatsapp_messages(
    member_id, member_name, member_phone, message_type, message_content, status,
    scheduled_at, created_at
) VALUES (
    :member_id, :member_name, :member_phone, :message_type, :message_content, :status,
    :scheduled_at, :created_at
)
"""

SELECT_BY_ID = "SELECT * FROM whatsapp_messages WHERE id = ?"

SELECT_ALL = "SELECT * FROM whatsapp_messages ORDER BY id DESC"

SELECT_BY_STATUS = "SELECT * FROM whatsapp_messages WHERE status = ? ORDER BY id DESC"

# Used to avoid queueing the same reminder twice on one day.
SELECT_SAME_DAY = """
SELECT id FROM whatsapp_messages
WHERE member_id = ? AND message_type = ? AND date(created_at) = ?
LIMIT 1
"""

MARK_SENT = "UPDATE whatsapp_messages SET status = 'sent', sent_at = ?, error_message = NULL WHERE id = ?"

MARK_FAILED = "UPDATE whatsapp_messages SET status = 'failed', error_message = ? WHERE id = ?"

RETRY = "UPDATE whatsapp_messages SET status = 'pending', retry_count = retry_count + 1 WHERE id = ?"

DELETE = "DELETE FROM whatsapp_messages WHERE id = ?"
