"""SQL for message templates."""

SELECT_ALL = "SELECT * FROM whatsapp_templates ORDER BY message_type"

SELECT_BY_TYPE = "SELECT * FROM whatsapp_templates WHERE message_type = ?"

UPDATE = """
UPDATE whatsapp_templates SET template_content = ?, is_active = ?, updated_at = ?
WHERE message_type = ?
"""
