# backend/crimelens/models/pattern.py
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from crimelens.services.temporal import DayType, TimeBucket


# The dashboard reads these as camelCase (mostLikelyTime, crimeType, ...)
class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class TimePattern(_CamelModel):
    time_range: TimeBucket
    crime_type: str
    probability: float
    description: str
    average_time: Optional[str] = None  # "HH:MM AM/PM"


class DayPattern(_CamelModel):
    day_type: DayType
    crime_type: str
    probability: float
    description: str


class HighRiskPeriod(_CamelModel):
    period: str
    crime_type: str
    risk_level: Literal["High", "Medium", "Low"]


class PatternSummary(_CamelModel):
    most_likely_time: TimePattern
    most_likely_day: DayPattern
    high_risk_periods: Tuple[HighRiskPeriod, ...] = ()
    recommendations: Tuple[str, ...] = ()
