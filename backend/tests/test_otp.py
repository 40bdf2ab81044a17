import time

import pytest
from botocore.exceptions import ClientError
from fastapi import HTTPException

from crimelens.db import dynamo
from crimelens.models.user import VerifyOtpBody
from crimelens.services import otp as otp_service

PHONE = "+919876543210"


# ---------- dynamo helpers ----------

def test_store_and_get_otp(otps_table):
    expires = dynamo.store_otp(PHONE, "424242", expires_in_minutes=10)

    item = dynamo.get_otp(PHONE)
    assert item["otp"] == "424242"
    assert item["expires_at"] == int(expires.timestamp())
    assert not dynamo.otp_expired(item)

    dynamo.delete_otp(PHONE)
    assert dynamo.get_otp(PHONE) is None


def test_otp_expired():
    assert dynamo.otp_expired({"expires_at": int(time.time()) - 5})
    assert dynamo.otp_expired({})


def test_store_user_keeps_created_at_and_skips_none(users_table):
    first = dynamo.store_user(PHONE, username="asha", email=None, verified=True)
    assert first["username"] == "asha"
    assert "email" not in first
    created = first["created_at"]

    second = dynamo.store_user(PHONE, guardian_phone="919811122233")
    assert second["created_at"] == created
    assert second["username"] == "asha"
    assert second["guardian_phone"] == "919811122233"
    assert dynamo.get_user(PHONE)["verified"] is True


def test_generate_otp_is_six_digits():
    for _ in range(20):
        code = otp_service.generate_otp()
        assert len(code) == 6 and code.isdigit()


# ---------- send ----------

def test_send_otp_demo_returns_code(otps_table, fake_sns, demo_mode):
    resp = otp_service.send_otp(PHONE)

    assert resp["demo_mode"] is True
    assert resp["demo_otp"] == otps_table.items[PHONE]["otp"]
    assert resp["demo_otp"] in resp["message"]
    assert fake_sns.published == []


def test_send_otp_live_publishes(otps_table, fake_sns, live_sms):
    resp = otp_service.send_otp(PHONE)

    assert resp == {"success": True, "message": "OTP sent successfully via SMS", "message_id": "msg-1"}
    (call,) = fake_sns.published
    assert otps_table.items[PHONE]["otp"] in call["Message"]


def test_send_otp_sms_failure_still_returns_code(otps_table, fake_sns, live_sms):
    fake_sns.failing.add(PHONE)

    with pytest.raises(HTTPException) as exc:
        otp_service.send_otp(PHONE)

    assert exc.value.status_code == 500
    assert exc.value.detail["error"] == "Failed to send SMS: Invalid phone number"
    assert exc.value.detail["demo_otp"] == otps_table.items[PHONE]["otp"]


# ---------- verify ----------

def test_verify_demo_code(users_table, otps_table, demo_mode):
    resp = otp_service.verify_otp(VerifyOtpBody(phone=PHONE, otp="123456", username="asha"))

    assert resp["message"] == "OTP verified (Demo Mode)"
    assert resp["user"].verified is True
    assert users_table.items[PHONE]["username"] == "asha"


def test_demo_code_rejected_outside_demo_mode(users_table, otps_table, live_sms):
    with pytest.raises(HTTPException) as exc:
        otp_service.verify_otp(VerifyOtpBody(phone=PHONE, otp="demo"))
    assert (exc.value.status_code, exc.value.detail) == (400, "OTP not found or expired")


def test_verify_expired_code_is_deleted(users_table, otps_table, live_sms):
    dynamo.store_otp(PHONE, "111111", expires_in_minutes=-1)

    with pytest.raises(HTTPException) as exc:
        otp_service.verify_otp(VerifyOtpBody(phone=PHONE, otp="111111"))

    assert exc.value.detail == "OTP expired"
    assert PHONE not in otps_table.items


def test_verify_wrong_code(users_table, otps_table, live_sms):
    dynamo.store_otp(PHONE, "111111")

    with pytest.raises(HTTPException) as exc:
        otp_service.verify_otp(VerifyOtpBody(phone=PHONE, otp="222222"))

    assert exc.value.detail == "Invalid OTP"
    assert PHONE in otps_table.items
    assert users_table.items == {}


def test_verify_success_consumes_code(users_table, otps_table, live_sms):
    dynamo.store_otp(PHONE, "111111")
    body = VerifyOtpBody(phone=PHONE, otp="111111", email="asha@crimelens.in", guardian_phone="+919811122233")

    resp = otp_service.verify_otp(body)

    assert resp["message"] == "OTP verified successfully"
    assert resp["user"].email == "asha@crimelens.in"
    assert resp["user"].guardian_phone == "+919811122233"
    assert PHONE not in otps_table.items
    assert users_table.items[PHONE]["verified"] is True


def test_storage_errors_propagate(otps_table, demo_mode):
    otps_table.fail_with = ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, "PutItem")

    with pytest.raises(ClientError):
        otp_service.send_otp(PHONE)
