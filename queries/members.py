"""SQL for the members table."""

INSERT = """
INSERT INTO members(
    custom_member_id, name, email, address, telephone_no, mobile_no, occupation,
    marital_status, anniversary_date, blood_group, sex, date_of_birth, alternate_no,
    member_image, id_proof_image, date_of_registration, receipt_no, payment_mode,
    plan_type, services, membership_fees, registration_fee, package_fee, discount,
    paid_amount, subscription_start_date, subscription_end_date, subscription_status,
    status, medical_issues, goals, height, weight, created_at, updated_at
) VALUES (
    :custom_member_id, :name, :email, :address, :telephone_no, :mobile_no, :occupation,
    :marital_status, :anniversary_date, :blood_group, :sex, :date_of_birth, :alternate_no,
    :member_image, :id_proof_image, :date_of_registration, :receipt_no, :payment_mode,
    :plan_type, :services, :membership_fees, :registration_fee, :package_fee, :discount,
    :paid_amount, :subscription_start_date, :subscription_end_date, :subscription_status,
    :status, :medical_issues, :goals, :height, :weight, :created_at, :updated_at
)
"""

# Restore from the archive keeps the original primary key.
INSERT_WITH_ID = """
INSERT INTO members(
    id, custom_member_id, name, email, address, telephone_no, mobile_no, occupation,
    marital_status, anniversary_date, blood_group, sex, date_of_birth, alternate_no,
    member_image, id_proof_image, date_of_registration, receipt_no, payment_mode,
    plan_type, services, membership_fees, registration_fee, package_fee, discount,
    paid_amount, subscription_start_date, subscription_end_date, subscription_status,
    status, medical_issues, goals, height, weight, created_at, updated_at
) VALUES (
    :id, :custom_member_id, :name, :email, :address, :telephone_no, :mobile_no, :occupation,
    :marital_status, :anniversary_date, :blood_group, :sex, :date_of_birth, :alternate_no,
    :member_image, :id_proof_image, :date_of_registration, :receipt_no, :payment_mode,
    :plan_type, :services, :membership_fees, :registration_fee, :package_fee, :discount,
    :paid_amount, :subscription_start_date, :subscription_end_date, :subscription_status,
    :status, :medical_issues, :goals, :height, :weight, :created_at, :updated_at
)
"""

# paid_amount and custom_member_id have their own statements.
UPDATE = """
UPDATE members SET
    name = :name, email = :email, address = :address, telephone_no = :telephone_no,
    mobile_no = :mobile_no, occupation = :occupation, marital_status = :marital_status,
    anniversary_date = :anniversary_date, blood_group = :blood_group, sex = :sex,
    date_of_birth = :date_of_birth, alternate_no = :alternate_no, member_image = :member_image,
    id_proof_image = :id_proof_image, date_of_registration = :date_of_registration,
    receipt_no = :receipt_no, payment_mode = :payment_mode, plan_type = :plan_type,
    services = :services, membership_fees = :membership_fees,
    registration_fee = :registration_fee, package_fee = :package_fee, discount = :discount,
    subscription_start_date = :subscription_start_date,
    subscription_end_date = :subscription_end_date,
    subscription_status = :subscription_status, status = :status,
    medical_issues = :medical_issues, goals = :goals, height = :height, weight = :weight,
    updated_at = :updated_at
WHERE id = :id
"""

UPDATE_PAID = "UPDATE members SET paid_amount = ?, updated_at = ? WHERE id = ?"

UPDATE_PAID_AND_STATUS = "UPDATE members SET paid_amount = ?, status = ?, updated_at = ? WHERE id = ?"

UPDATE_NUMBER = "UPDATE members SET custom_member_id = ?, updated_at = ? WHERE id = ?"

UPDATE_SUBSCRIPTION_STATUS = "UPDATE members SET subscription_status = ?, updated_at = ? WHERE id = ?"

UPDATE_STATUS = "UPDATE members SET status = ?, updated_at = ? WHERE id = ?"

UPDATE_RECEIPT_NO = "UPDATE members SET receipt_no = ?, updated_at = ? WHERE id = ?"

RENEW = """
UPDATE members SET
    plan_type = :plan_type,
    registration_fee = 0,
    discount = 0,
    package_fee = :fees,
    membership_fees = :fees,
    subscription_start_date = :start_date,
    subscription_end_date = :end_date,
    subscription_status = 'active',
    status = 'active',
    payment_mode = :payment_mode,
    updated_at = :updated_at
WHERE id = :id
"""

SELECT_BY_ID = "SELECT * FROM members WHERE id = ?"

SELECT_BY_NUMBER = "SELECT * FROM members WHERE custom_member_id = ?"

SELECT_BY_MOBILE = "SELECT * FROM members WHERE mobile_no = ? ORDER BY id DESC"

SELECT_ALL = "SELECT * FROM members ORDER BY id DESC"

SELECT_BY_STATUS = "SELECT * FROM members WHERE status = ? ORDER BY id DESC"

SEARCH = """
SELECT * FROM members
WHERE name LIKE :like OR mobile_no LIKE :like OR custom_member_id LIKE :like OR email LIKE :like
ORDER BY id DESC
"""

SELECT_NUMBERS = "SELECT custom_member_id FROM members WHERE custom_member_id IS NOT NULL"

SELECT_IDS = "SELECT id FROM members ORDER BY id"

SELECT_EXPIRING = """
SELECT * FROM members
WHERE status = 'active' AND subscription_end_date BETWEEN ? AND ?
ORDER BY subscription_end_date ASC
"""

SELECT_ACTIVE = "SELECT * FROM members WHERE status = 'active' ORDER BY name"

SELECT_BIRTHDAYS = """
SELECT * FROM members
WHERE status != 'partial' AND date_of_birth IS NOT NULL AND strftime('%m-%d', date_of_birth) = ?
"""

COUNT_BY_STATUS = "SELECT status, COUNT(*) AS c FROM members GROUP BY status"

COUNT_BY_SUBSCRIPTION = """
SELECT subscription_status, COUNT(*) AS c FROM members
WHERE status != 'partial' GROUP BY subscription_status
"""

DELETE = "DELETE FROM members WHERE id = ?"

# Batch subscription status refresh. Each statement skips rows already at the target value.
# Members that only lapsed by expiry (inactive + expired) come back to active once
# their end date moves forward.
MARK_EXPIRED = """
UPDATE members SET subscription_status = 'expired', status = 'inactive', updated_at = :now
WHERE subscription_end_date IS NOT NULL
  AND subscription_end_date < :today
  AND status IN ('active', 'inactive')
  AND NOT (subscription_status = 'expired' AND status = 'inactive')
"""

MARK_EXPIRING_SOON = """
UPDATE members SET subscription_status = 'expiring_soon', status = 'active', updated_at = :now
WHERE subscription_end_date BETWEEN :today AND :horizon
  AND (status = 'active' OR (status = 'inactive' AND subscription_status = 'expired'))
  AND NOT (status = 'active' AND subscription_status = 'expiring_soon')
"""

MARK_ACTIVE = """
UPDATE members SET subscription_status = 'active', status = 'active', updated_at = :now
WHERE subscription_end_date > :horizon
  AND (status = 'active' OR (status = 'inactive' AND subscription_status = 'expired'))
  AND NOT (status = 'active' AND subscription_status = 'active')
"""
