import api


def test_case_conversion():
    assert api.to_camel("custom_member_id") == "customMemberId"
    assert api.to_snake("customMemberId") == "custom_member_id"
    assert api.to_snake("mobileNo") == "mobile_no"
    assert api.from_payload({"paidAmount": "10", "nested": {"planType": "monthly"}}) == {
        "paid_amount": "10",
        "nested": {"plan_type": "monthly"},
    }


def _member_payload(**overrides):
    data = {
        "name": "Api Member",
        "mobileNo": "9876500000",
        "planType": "monthly",
        "registrationFee": "500",
        "packageFee": "1500",
        "paidAmount": "1000",
        "paymentMode": "cash",
    }
    data.update(overrides)
    return data


def test_create_member_round_trip(database):
    res = api.call(database, "createMember", _member_payload())

    assert res["success"] is True
    member = res["data"]
    assert member["customMemberId"] == "1"
    assert member["membershipFees"] == "2000.00"
    assert member["paidAmount"] == "1000.00"


def test_due_payment_and_error_shape(database):
    member_id = api.call(database, "createMember", _member_payload())["data"]["id"]

    too_much = api.call(database, "payMemberDueAmount", member_id, "5000")
    assert too_much == {
        "success": False,
        "error": "Payment amount (5000.00) cannot exceed due amount (1000.00).",
    }

    ok = api.call(database, "payMemberDueAmount", member_id, "1000", paymentType="upi")
    assert ok["success"] is True
    assert ok["data"]["remainingDue"] == "0.00"
    assert ok["data"]["paymentStatus"] == "paid"
    assert ok["data"]["receipt"]["paymentType"] == "upi"


def test_validation_errors_are_joined(database):
    res = api.call(database, "createMember", _member_payload(name="", mobileNo="123"))
    assert res["success"] is False
    assert res["error"] == "Name is required.; Mobile number must be exactly 10 digits."


def test_not_found(database):
    res = api.call(database, "getMemberById", 12345)
    assert res == {"success": False, "error": "Member not found: 12345"}


def test_unknown_operation(database):
    assert api.call(database, "dropEverything") == {"success": False, "error": "Unknown operation: dropEverything"}


def test_dataframe_results_become_records(database):
    api.call(
        database,
        "createExpense",
        {"category": "rent", "description": "Rent", "amount": "100", "date": "2026-03-01"},
    )
    res = api.call(database, "getMonthlyExpenseReport", 3, 2026)
    assert res["data"] == [{"category": "rent", "entries": 1, "total": "100.00"}]


def test_login(database):
    res = api.call(database, "login", "admin", "admin123")
    assert res["data"]["user"]["username"] == "admin"
    assert res["data"]["forcePasswordChange"] is True

    assert api.call(database, "login", "admin", "wrong") == {
        "success": False,
        "error": "Invalid username or password.",
    }


def test_iso_date_arguments(database):
    member_id = api.call(database, "createMember", _member_payload(paidAmount="2000"))["data"]["id"]

    counts = api.call(database, "updateAllSubscriptionStatuses", asOf="2099-01-01")
    assert counts["success"] is True
    assert counts["data"]["expired"] == 1

    found = api.call(database, "getReceiptsByDateRange", "2000-01-01", "2099-12-31")
    assert [r["amountPaid"] for r in found["data"]] == ["2000.00"]

    renewed = api.call(database, "renewMembership", member_id, "monthly", "1500", today="2099-01-01")
    assert renewed["success"] is True
    assert renewed["data"]["member"]["subscriptionStartDate"] == "2099-01-01"
    assert renewed["data"]["invoice"]["status"] == "paid"


def test_bad_arguments_come_back_as_errors(database):
    bad_date = api.call(database, "getExpiringMembers", today="next tuesday")
    assert bad_date["success"] is False
    assert bad_date["error"].startswith("Invalid request:")

    missing = api.call(database, "getMemberById")
    assert missing["success"] is False
    assert missing["error"].startswith("Invalid request:")
