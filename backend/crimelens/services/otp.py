# backend/crimelens/services/otp.py
import logging
import secrets
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, status

from crimelens import config
from crimelens.db import dynamo
from crimelens.models.user import UserProfile, VerifyOtpBody
from crimelens.services.sns_alerts import aws_error_message, mask_phone, send_sms

log = logging.getLogger("crimelens.otp")


def generate_otp() -> str:
    """Random 6-digit code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


def send_otp(phone: str) -> Dict[str, Any]:
    """
    Create a fresh code for this phone and store it with a short expiry.
    With SMS enabled the code goes out through SNS; otherwise it is returned
    to the caller (demo mode) so the login flow still works end to end.
    """
    code = generate_otp()
    dynamo.store_otp(phone, code, config.OTP_TTL_MINUTES)

    if not config.SMS_ENABLED:
        log.info("Demo mode - OTP generated for %s but not sent", mask_phone(phone))
        return {
            "success": True,
            "message": f"Demo Mode: OTP is {code} (SMS not sent - SMS_ENABLED is off)",
            "demo_otp": code,
            "demo_mode": True,
            "note": "To send real SMS, set SMS_ENABLED=true and configure AWS credentials for SNS",
        }

    text = f"Your CrimeLens verification code is {code}. It expires in {config.OTP_TTL_MINUTES} minutes."
    try:
        message_id = send_sms(phone, text)
    except (BotoCoreError, ClientError) as e:
        msg = aws_error_message(e)
        log.error("OTP SMS to %s failed: %s", mask_phone(phone), msg)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": f"Failed to send SMS: {msg}",
                "demo_otp": code,
                "message": f"OTP generated: {code} (SMS sending failed - check SNS configuration)",
            },
        )

    log.info("OTP sent to %s - MessageId: %s", mask_phone(phone), message_id)
    return {"success": True, "message": "OTP sent successfully via SMS", "message_id": message_id}


def _mark_verified(body: VerifyOtpBody) -> UserProfile:
    item = dynamo.store_user(
        body.phone,
        username=body.username,
        email=body.email,
        guardian_phone=body.guardian_phone,
        verified=True,
    )
    return UserProfile(**item)


def verify_otp(body: VerifyOtpBody) -> Dict[str, Any]:
    """
    Check the submitted code and upsert the user as verified.
    Demo codes are accepted while DEMO_MODE is on. A used or expired code is deleted.
    """
    if config.DEMO_MODE and body.otp in config.DEMO_OTPS:
        user = _mark_verified(body)
        log.info("Demo OTP accepted for %s", mask_phone(body.phone))
        return {"success": True, "message": "OTP verified (Demo Mode)", "user": user}

    stored = dynamo.get_otp(body.phone)
    if not stored:
        log.info("OTP not found for %s", mask_phone(body.phone))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OTP not found or expired")

    if dynamo.otp_expired(stored):
        log.info("OTP expired for %s", mask_phone(body.phone))
        dynamo.delete_otp(body.phone)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OTP expired")

    if not secrets.compare_digest(str(stored.get("otp", "")), body.otp):
        log.info("Invalid OTP for %s", mask_phone(body.phone))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP")

    dynamo.delete_otp(body.phone)
    user = _mark_verified(body)
    log.info("OTP verified for %s", mask_phone(body.phone))
    return {"success": True, "message": "OTP verified successfully", "user": user}
