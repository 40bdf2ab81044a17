from typing import Any, Dict, List

from pydantic import BaseModel, Field

from crimelens.models.pattern import PatternSummary


class TopCrime(BaseModel):
    crime: str
    count: int


# Per-city aggregate shown on the map (GeoJSON feature properties)
class CityProperties(BaseModel):
    city: str
    latitude: float
    longitude: float
    count: int = Field(..., description="Number of incidents in the city")
    avg_severity: float
    intensity_score: float = Field(..., description="avg_severity x ln(1 + count)")
    top_crimes: List[TopCrime] = []
    sample_records: List[Dict[str, Any]] = []
    prediction: PatternSummary


class IntensityPercentiles(BaseModel):
    top_20: float
    top_50: float
    top_80: float
