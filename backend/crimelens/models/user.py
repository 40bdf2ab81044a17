# backend/crimelens/models/user.py
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field

# Loose E.164: optional '+', 7-15 digits. The '+' is added before sending SMS.
PHONE_PATTERN = r"^\+?\d{7,15}$"

# ---------- PUBLIC MODELS ----------

class SendOtpBody(BaseModel):
    # older clients post the number as "numbers"
    phone: str = Field(..., pattern=PHONE_PATTERN, validation_alias=AliasChoices("phone", "numbers"))


class VerifyOtpBody(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    otp: str = Field(..., min_length=1, max_length=16)
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    guardian_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)


class UserProfile(BaseModel):
    # what we return after verification / read back from the Users table
    phone: str
    username: Optional[str] = None
    email: Optional[str] = None
    guardian_phone: Optional[str] = None
    verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
