from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, HTTPException

from crimelens.models.user import SendOtpBody, VerifyOtpBody
from crimelens.services import otp as otp_service
from crimelens.services.sns_alerts import aws_error_message

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", summary="Send a one-time login code by SMS")
def send_otp(body: SendOtpBody):
    try:
        return otp_service.send_otp(body.phone)
    except (BotoCoreError, ClientError) as e:
        # OTP / user storage failures; SMS failures are handled inside the service
        raise HTTPException(status_code=500, detail=aws_error_message(e))


@router.post("/verify-otp", summary="Verify the code and register/refresh the user")
def verify_otp(body: VerifyOtpBody):
    try:
        return otp_service.verify_otp(body)
    except (BotoCoreError, ClientError) as e:
        raise HTTPException(status_code=500, detail=aws_error_message(e))
