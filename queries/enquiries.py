"""SQL for the enquiries table."""

INSERT = """
INSERT INTO enquiries(
    enquiry_number, name, address, telephone_no, mobile_no, occupation, sex,
    ref_person_name, date_of_enquiry, interested_in, membership_fees, payment_mode,
    payment_frequency, status, notes, follow_up_date, converted_to_member_id,
    created_by, created_at, updated_at
) VALUES (
    :enquiry_number, :name, :address, :telephone_no, :mobile_no, :occupation, :sex,
    :ref_person_name, :date_of_enquiry, :interested_in, :membership_fees, :payment_mode,
    :payment_frequency, :status, :notes, :follow_up_date, :converted_to_member_id,
    :created_by, :created_at, :updated_at
)
"""

UPDATE = """
UPDATE enquiries SET
    name = :name, address = :address, telephone_no = :telephone_no, mobile_no = :mobile_no,
    occupation = :occupation, sex = :sex, ref_person_name = :ref_person_name,
    date_of_enquiry = :date_of_enquiry, interested_in = :interested_in,
    membership_fees = :membership_fees, payment_mode = :payment_mode,
    payment_frequency = :payment_frequency, status = :status, notes = :notes,
    follow_up_date = :follow_up_date, updated_at = :updated_at
WHERE id = :id
"""

MARK_CONVERTED = """
UPDATE enquiries SET status = 'converted', converted_to_member_id = ?, updated_at = ?
WHERE id = ?
"""

SELECT_BY_ID = "SELECT * FROM enquiries WHERE id = ?"

SELECT_ALL = "SELECT * FROM enquiries ORDER BY id DESC"

SELECT_BY_STATUS = "SELECT * FROM enquiries WHERE status = ? ORDER BY id DESC"

SELECT_FOLLOW_UPS_DUE = """
SELECT * FROM enquiries
WHERE status IN ('new', 'contacted', 'follow_up') AND follow_up_date IS NOT NULL AND follow_up_date <= ?
ORDER BY follow_up_date ASC
"""

DELETE = "DELETE FROM enquiries WHERE id = ?"
