from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import boto3

from crimelens import config

REGION = config.AWS_REGION
USERS_TABLE = config.USERS_TABLE
OTPS_TABLE = config.OTPS_TABLE

dynamodb = boto3.resource("dynamodb", region_name=REGION)
users_table = dynamodb.Table(USERS_TABLE)
otps_table = dynamodb.Table(OTPS_TABLE)

# Attributes store_user is allowed to write besides the key
_USER_FIELDS = ("username", "email", "guardian_phone", "verified")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------- OTPs ----------
def store_otp(phone: str, otp: str, expires_in_minutes: int = 10) -> datetime:
    """
    Upsert the OTP for this phone (one live code per number).
    `expires_at` is epoch seconds so the table's TTL can reap old codes.
    """
    now = _now()
    expires_at = now + timedelta(minutes=expires_in_minutes)
    otps_table.put_item(
        Item={
            "phone": phone,
            "otp": otp,
            "expires_at": int(expires_at.timestamp()),
            "created_at": now.isoformat(),
        }
    )
    return expires_at


def get_otp(phone: str) -> Optional[Dict[str, Any]]:
    """Raw OTP item or None. TTL deletion is lazy, so callers must still check expires_at."""
    resp = otps_table.get_item(Key={"phone": phone})
    return resp.get("Item")


def delete_otp(phone: str) -> None:
    otps_table.delete_item(Key={"phone": phone})


def otp_expired(item: Dict[str, Any]) -> bool:
    return _now().timestamp() > int(item.get("expires_at", 0))


# ---------- Users ----------
def store_user(phone: str, **fields: Any) -> Dict[str, Any]:
    """
    Create or update a user keyed by phone. Only the given, non-None fields are
    written; created_at is set once on insert and never overwritten.
    Returns the full item after the write.
    """
    now_iso = _now().isoformat()
    names = {"#u": "updated_at", "#c": "created_at"}
    values: Dict[str, Any] = {":now": now_iso}
    assignments = ["#u = :now", "#c = if_not_exists(#c, :now)"]

    for key in _USER_FIELDS:
        value = fields.get(key)
        if value is None:
            continue
        names[f"#{key}"] = key  # alias everything; some names are reserved words
        values[f":{key}"] = value
        assignments.append(f"#{key} = :{key}")

    resp = users_table.update_item(
        Key={"phone": phone},
        UpdateExpression="SET " + ", ".join(assignments),
        ExpressionAttributeNames=names,
        ExpressionAttributeValues=values,
        ReturnValues="ALL_NEW",
    )
    return resp.get("Attributes") or {"phone": phone, **{k: v for k, v in fields.items() if v is not None}}


def get_user(phone: str) -> Optional[Dict[str, Any]]:
    """Return the full User item or None."""
    resp = users_table.get_item(Key={"phone": phone})
    return resp.get("Item")
