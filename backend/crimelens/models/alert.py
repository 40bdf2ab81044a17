from typing import List, Optional

from pydantic import BaseModel, Field

from crimelens.models.area import CityProperties


class CheckAlertBody(BaseModel):
    city: str = Field(..., min_length=1)


class CheckAlertResponse(BaseModel):
    success: bool = True
    should_alert: bool
    city_data: CityProperties
    top_50_threshold: float


class SosBody(BaseModel):
    user_phone: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)


class SosMessages(BaseModel):
    user_message: str
    guardian_message: str


class SosResponse(BaseModel):
    success: bool
    message: str
    user_sms_sent: bool = False
    guardian_sms_sent: bool = False
    errors: Optional[List[str]] = None
    # Filled when nothing was actually sent (demo mode / SMS disabled)
    demo: Optional[SosMessages] = None
    note: Optional[str] = None
