"""
services/enquiries.py
Walk-in leads and their conversion into members.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

import db as storage
import pdfs
from errors import NotFoundError, ValidationError
from models import ENQUIRY_STATUSES, Enquiry, Member, PAYMENT_TYPES, from_row, money, to_params
from queries import enquiries as q_enquiries
from services import members
from utils import is_valid_mobile

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "address",
    "telephone_no",
    "mobile_no",
    "occupation",
    "sex",
    "ref_person_name",
    "date_of_enquiry",
    "interested_in",
    "membership_fees",
    "payment_mode",
    "payment_frequency",
    "status",
    "notes",
    "follow_up_date",
)


def generate_enquiry_number(database: storage.Database) -> str:
    return f"ENQ{storage.next_counter(database, 'enquiry_counter'):03d}"


def _validate(data: dict) -> list[str]:
    errors: list[str] = []
    if not str(data.get("name") or "").strip():
        errors.append("Name is required.")
    if not is_valid_mobile(data.get("mobile_no")):
        errors.append("Mobile number must be exactly 10 digits.")
    if data.get("status") not in ENQUIRY_STATUSES:
        errors.append(f"Invalid enquiry status: {data.get('status')!r}")
    try:
        if money(data.get("membership_fees")) < 0:
            errors.append("Membership fees cannot be negative.")
    except ValidationError:
        errors.append("Membership fees must be numeric.")
    return errors


def get_enquiry(database: storage.Database, enquiry_id: int) -> Enquiry:
    enquiry = from_row(Enquiry, database.fetch_one(q_enquiries.SELECT_BY_ID, (enquiry_id,)))
    if enquiry is None:
        raise NotFoundError("Enquiry", enquiry_id)
    return enquiry


def list_enquiries(database: storage.Database, status: str | None = None) -> list[Enquiry]:
    if status:
        rows = database.fetch_all(q_enquiries.SELECT_BY_STATUS, (status,))
    else:
        rows = database.fetch_all(q_enquiries.SELECT_ALL)
    return [from_row(Enquiry, r) for r in rows]


def follow_ups_due(database: storage.Database, today: date | None = None) -> list[Enquiry]:
    today = today or date.today()
    return [from_row(Enquiry, r) for r in database.fetch_all(q_enquiries.SELECT_FOLLOW_UPS_DUE, (today.isoformat(),))]


def create_enquiry(database: storage.Database, data: dict, created_by: str = "System") -> Enquiry:
    params = {f.name: f.default for f in dataclasses.fields(Enquiry) if f.default is not dataclasses.MISSING}
    params.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    params["status"] = params.get("status") or "new"
    params["date_of_enquiry"] = params.get("date_of_enquiry") or date.today().isoformat()
    errors = _validate(params)
    if errors:
        raise ValidationError(errors)
    now = storage.now_iso()
    with database.get_conn():
        params.update(
            enquiry_number=generate_enquiry_number(database),
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        enquiry_id = database.execute(q_enquiries.INSERT, to_params(Enquiry, params))
    logger.info("Enquiry %s recorded for %s", params["enquiry_number"], params["name"])
    return get_enquiry(database, enquiry_id)


def update_enquiry(database: storage.Database, enquiry_id: int, changes: dict) -> Enquiry:
    current = get_enquiry(database, enquiry_id)
    params = {**dataclasses.asdict(current), **{k: v for k, v in changes.items() if k in EDITABLE_FIELDS}}
    if params["status"] == "converted" and current.status != "converted":
        raise ValidationError("Use conversion to turn an enquiry into a member.")
    errors = _validate(params)
    if errors:
        raise ValidationError(errors)
    params["updated_at"] = storage.now_iso()
    database.execute(q_enquiries.UPDATE, to_params(Enquiry, params))
    return get_enquiry(database, enquiry_id)


def delete_enquiry(database: storage.Database, enquiry_id: int) -> None:
    get_enquiry(database, enquiry_id)
    database.execute(q_enquiries.DELETE, (enquiry_id,))


def convert_enquiry_to_member(
    database: storage.Database,
    enquiry_id: int,
    member_data: dict | None = None,
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
    today: date | None = None,
) -> Member:
    """
    Register a member from an enquiry. member_data overrides or adds fields
    (email, plan, fees...). The enquiry is marked converted with the link.
    """
    with database.get_conn():
        enquiry = get_enquiry(database, enquiry_id)
        if enquiry.status == "converted":
            raise ValidationError(f"Enquiry {enquiry.enquiry_number} has already been converted.")
        data = {
            "name": enquiry.name,
            "address": enquiry.address,
            "telephone_no": enquiry.telephone_no,
            "mobile_no": enquiry.mobile_no,
            "occupation": enquiry.occupation,
            "sex": enquiry.sex,
            "services": list(enquiry.interested_in),
            "package_fee": enquiry.membership_fees,
        }
        if enquiry.payment_mode in PAYMENT_TYPES:
            data["payment_mode"] = enquiry.payment_mode
        data.update(member_data or {})
        member = members.create_member(database, data, created_by=created_by, pdf=pdf, today=today)
        database.execute(q_enquiries.MARK_CONVERTED, (member.id, storage.now_iso(), enquiry_id))
    logger.info("Enquiry %s converted to member %s", enquiry.enquiry_number, member.custom_member_id)
    return member
