# backend/crimelens/services/sns_alerts.py
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from crimelens import config
from crimelens.models.alert import SosMessages, SosResponse
from crimelens.models.area import CityProperties
from crimelens.models.user import UserProfile
from crimelens.services.area_report import intensity_percentiles

log = logging.getLogger("crimelens.sns_alerts")

sns = boto3.client("sns", region_name=config.AWS_REGION)

NO_GUARDIAN_TEXT = "No guardian phone set"


# ----------------------------
# Phone helpers
# ----------------------------

def format_phone(phone: str) -> str:
    """SNS wants E.164, so make sure there is a leading '+'."""
    return phone if phone.startswith("+") else f"+{phone}"


def mask_phone(phone: str) -> str:
    """'+919876543210' -> '+91***3210' for log lines."""
    return re.sub(r"^(.{3})(.*)(.{4})$", r"\1***\3", phone or "N/A")


def aws_error_message(err: Exception) -> str:
    if isinstance(err, ClientError):
        return err.response.get("Error", {}).get("Message", str(err))
    return str(err)


# ----------------------------
# Formatters
# ----------------------------

def _crimes_text(report: CityProperties) -> str:
    return ", ".join(c.crime for c in report.top_crimes[:3]) or "Various"


def _map_link(report: CityProperties) -> str:
    return f"https://www.google.com/maps?q={report.latitude},{report.longitude}"


def build_user_sos_message(report: CityProperties) -> str:
    return "\n".join([
        "⚠ SAFETY ALERT",
        f"You've entered: {report.city}",
        f"Severity: {report.avg_severity:g}",
        f"Common crimes: {_crimes_text(report)}",
        f"Location: {_map_link(report)}",
    ])


def build_guardian_sos_message(user_phone: str, report: CityProperties) -> str:
    return "\n".join([
        "GUARDIAN ALERT",
        f"Your contact {user_phone} is in {report.city} (Severity {report.avg_severity:g}).",
        f"Crimes: {_crimes_text(report)}",
        f"Location: {_map_link(report)}",
    ])


# ----------------------------
# Decision helpers
# ----------------------------

def should_alert(report: CityProperties, reports: Iterable[CityProperties]) -> Tuple[bool, float]:
    """
    Warn when the city is severe on average or sits in the top half by intensity.
    Returns (decision, top_50_threshold).
    """
    top_50 = intensity_percentiles(reports).top_50
    decision = report.avg_severity >= config.ALERT_SEVERITY_THRESHOLD or report.intensity_score >= top_50
    return decision, top_50


# ----------------------------
# Publishers
# ----------------------------

def send_sms(phone: str, message: str) -> str:
    """
    Send direct SMS. Your account/region must allow SMS and the number must be SMS-capable.
    Sender ID and SMS type come from config. Returns SNS MessageId.
    """
    resp = sns.publish(
        PhoneNumber=format_phone(phone),
        Message=message,
        MessageAttributes={
            # SNS rejects sender IDs longer than 11 characters
            "AWS.SNS.SMS.SenderID": {"DataType": "String", "StringValue": config.SNS_SENDER_ID[:11]},
            "AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": config.SNS_SMS_TYPE},
        },
    )
    return resp["MessageId"]


# ----------------------------
# One-call convenience
# ----------------------------

def dispatch_sos(user: UserProfile, report: CityProperties) -> SosResponse:
    """
    Text the user (and their guardian, if any) about the area they are in.
    In demo mode, or with SMS disabled, the messages are only prepared and returned.
    Raises HTTPException(500) when SMS is live but no message went out.
    """
    messages = SosMessages(
        user_message=build_user_sos_message(report),
        guardian_message=(
            build_guardian_sos_message(user.phone, report) if user.guardian_phone else NO_GUARDIAN_TEXT
        ),
    )

    if config.DEMO_MODE or not config.SMS_ENABLED:
        log.info("SOS for %s in %s prepared but not sent (demo=%s, sms=%s)",
                 mask_phone(user.phone), report.city, config.DEMO_MODE, config.SMS_ENABLED)
        return SosResponse(
            success=True,
            message=(
                "SOS alert prepared (Demo Mode - SMS not sent)"
                if config.DEMO_MODE
                else "SOS alert prepared (SMS not enabled)"
            ),
            demo=messages,
            note=(
                "To send real SMS, set DEMO_MODE=false and SMS_ENABLED=true"
                if config.DEMO_MODE
                else "To send real SMS, set SMS_ENABLED=true and configure AWS credentials"
            ),
        )

    errors: List[str] = []
    user_sent = guardian_sent = False

    try:
        message_id = send_sms(user.phone, messages.user_message)
        user_sent = True
        log.info("User SOS SMS sent to %s - MessageId: %s", mask_phone(user.phone), message_id)
    except (BotoCoreError, ClientError) as e:
        errors.append(f"User SMS failed: {aws_error_message(e)}")
        log.error("User SOS SMS to %s failed: %s", mask_phone(user.phone), aws_error_message(e))

    if user.guardian_phone:
        try:
            message_id = send_sms(user.guardian_phone, messages.guardian_message)
            guardian_sent = True
            log.info("Guardian SOS SMS sent to %s - MessageId: %s", mask_phone(user.guardian_phone), message_id)
        except (BotoCoreError, ClientError) as e:
            errors.append(f"Guardian SMS failed: {aws_error_message(e)}")
            log.error("Guardian SOS SMS to %s failed: %s", mask_phone(user.guardian_phone), aws_error_message(e))

    if not (user_sent or guardian_sent):
        raise HTTPException(
            status_code=500,
            detail={
                "error": "; ".join(errors) or "Failed to send SMS",
                "demo": messages.model_dump(),
            },
        )

    return SosResponse(
        success=True,
        message="SOS alerts sent successfully",
        user_sms_sent=user_sent,
        guardian_sms_sent=guardian_sent,
        errors=errors or None,
    )
