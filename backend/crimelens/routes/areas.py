from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from crimelens.models.area import CityProperties, IntensityPercentiles
from crimelens.models.pattern import PatternSummary
from crimelens.services.area_report import (
    build_feature_collection,
    find_city,
    get_city_reports,
    intensity_percentiles,
)

log = logging.getLogger("crimelens.routes.areas")

router = APIRouter(prefix="/areas", tags=["areas"])


def city_reports_or_500():
    try:
        return get_city_reports()
    except (OSError, ValueError) as e:
        log.exception("Failed to process cities data")
        raise HTTPException(status_code=500, detail=f"Failed to process cities data: {e}")


@router.get("")
def list_areas():
    """
    GeoJSON FeatureCollection with one Point per city (centroid of its incidents).
    Properties carry count, avg_severity, intensity_score, top crimes and the pattern summary.
    """
    return build_feature_collection(city_reports_or_500())


@router.get("/percentiles", response_model=IntensityPercentiles)
def area_percentiles():
    """Intensity thresholds the map uses to colour the heat layer."""
    return intensity_percentiles(city_reports_or_500())


@router.get("/{city}", response_model=CityProperties)
def get_area(city: str):
    report = find_city(city_reports_or_500(), city)
    if report is None:
        raise HTTPException(status_code=404, detail="City not found")
    return report


@router.get("/{city}/prediction", response_model=PatternSummary)
def get_area_prediction(city: str):
    report = find_city(city_reports_or_500(), city)
    if report is None:
        raise HTTPException(status_code=404, detail="City not found")
    return report.prediction
