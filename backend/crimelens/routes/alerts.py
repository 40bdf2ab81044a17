import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, HTTPException

from crimelens.db import dynamo
from crimelens.models.alert import CheckAlertBody, CheckAlertResponse, SosBody, SosResponse
from crimelens.models.user import UserProfile
from crimelens.routes.areas import city_reports_or_500
from crimelens.services import sns_alerts
from crimelens.services.area_report import find_city
from crimelens.services.sns_alerts import aws_error_message, mask_phone

log = logging.getLogger("crimelens.routes.alerts")

router = APIRouter(tags=["alerts"])


@router.post("/check-alert", response_model=CheckAlertResponse)
def check_alert(body: CheckAlertBody):
    """Should the dashboard warn someone entering this city?"""
    reports = city_reports_or_500()
    report = find_city(reports, body.city)
    if report is None:
        raise HTTPException(status_code=404, detail="City not found")

    decision, top_50 = sns_alerts.should_alert(report, reports)
    return CheckAlertResponse(should_alert=decision, city_data=report, top_50_threshold=top_50)


@router.post("/sos", response_model=SosResponse, response_model_exclude_none=True)
def sos(body: SosBody):
    log.info("POST /sos - User: %s, City: %s", mask_phone(body.user_phone), body.city)

    try:
        item = dynamo.get_user(body.user_phone)
    except (BotoCoreError, ClientError) as e:
        raise HTTPException(status_code=500, detail=aws_error_message(e))
    if not item:
        raise HTTPException(status_code=401, detail="User not authenticated")

    report = find_city(city_reports_or_500(), body.city)
    if report is None:
        raise HTTPException(status_code=404, detail="City data not found")

    return sns_alerts.dispatch_sos(UserProfile(**item), report)
