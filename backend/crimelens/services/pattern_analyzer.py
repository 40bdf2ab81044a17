# backend/crimelens/services/pattern_analyzer.py
"""
Rule-based crime pattern summary for one city.

Buckets incidents by time of day and weekday/weekend, picks the most frequent
crime type per bucket and turns the counts into a bounded "probability".
This is a descriptive frequency ranking, not a predictive model.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from crimelens.models.incident import IncidentRecord
from crimelens.models.pattern import DayPattern, HighRiskPeriod, PatternSummary, TimePattern
from crimelens.services.temporal import DayType, TimeBucket, classify_day, classify_time, format_clock

log = logging.getLogger("crimelens.pattern_analyzer")

# Score = dominant share doubled, never above this
SCORE_CAP = 0.9
SCORE_SCALE = 2.0

# A high-risk flag needs the dominant crime to exceed this share of all incidents
NIGHT_RISK_SHARE = 0.10
WEEKEND_RISK_SHARE = 0.15

WEEKEND_PERIOD_LABEL = "Weekends"

# ----------------------------
# Fallbacks
# ----------------------------

# Starting point of each scan; a bucket must score strictly above 0.3 to replace it.
FALLBACK_TIME_PATTERN = TimePattern(
    time_range=TimeBucket.NIGHT,
    crime_type="THEFT",
    probability=0.3,
    description="Crimes are most common during night hours",
    average_time="10:37 PM",
)

FALLBACK_DAY_PATTERN = DayPattern(
    day_type=DayType.WEEKEND,
    crime_type="ASSAULT",
    probability=0.3,
    description="Crimes are more common on weekends",
)

# Returned as-is when there is nothing to analyze.
DEFAULT_SUMMARY = PatternSummary(
    most_likely_time=FALLBACK_TIME_PATTERN.model_copy(
        update={
            "probability": 0.4,
            "description": "Crimes are most common during night hours at an average time of 10:37 PM",
        }
    ),
    most_likely_day=FALLBACK_DAY_PATTERN.model_copy(update={"probability": 0.35}),
    high_risk_periods=(
        HighRiskPeriod(period=TimeBucket.NIGHT.value, crime_type="THEFT", risk_level="High"),
    ),
    recommendations=(
        "Avoid traveling alone during night hours",
        "Exercise extra caution on weekends",
        "Stay in well-lit areas",
    ),
)

CLOSING_TIPS = (
    "Stay in well-lit areas and avoid isolated locations",
    "Keep emergency contacts readily available",
)


# ----------------------------
# Aggregation
# ----------------------------

@dataclass(frozen=True)
class CrimeTally:
    count: int
    hours: Tuple[float, ...]


@dataclass(frozen=True)
class Aggregation:
    """
    Read-only counts for one batch of incidents.
    Mapping order is first-seen input order (buckets and crime types alike),
    which is what makes tie-breaks deterministic.
    """

    total: int
    by_time_bucket: Mapping[TimeBucket, Mapping[str, CrimeTally]]
    by_day_type: Mapping[DayType, Mapping[str, int]]


def aggregate(records: Iterable[IncidentRecord]) -> Aggregation:
    """Single pass over the incidents; the working dicts never leave this function."""
    total = 0
    hours_by_bucket: Dict[TimeBucket, Dict[str, List[float]]] = {}
    counts_by_day: Dict[DayType, Dict[str, int]] = {}

    for rec in records:
        total += 1
        bucket = classify_time(rec.occurred_at_time)
        hours_by_bucket.setdefault(bucket, {}).setdefault(rec.crime_type, []).append(rec.occurred_at_time)

        day_counts = counts_by_day.setdefault(classify_day(rec.occurred_on_date), {})
        day_counts[rec.crime_type] = day_counts.get(rec.crime_type, 0) + 1

    return Aggregation(
        total=total,
        by_time_bucket=MappingProxyType({
            bucket: MappingProxyType({
                crime: CrimeTally(count=len(hours), hours=tuple(hours))
                for crime, hours in crimes.items()
            })
            for bucket, crimes in hours_by_bucket.items()
        }),
        by_day_type=MappingProxyType({
            day: MappingProxyType(dict(crimes)) for day, crimes in counts_by_day.items()
        }),
    )


# ----------------------------
# Ranking
# ----------------------------

def dominant_crime(counts: Mapping[str, int]) -> Tuple[Optional[str], int]:
    """Most frequent crime type; on equal counts the first one seen wins."""
    best: Optional[str] = None
    best_count = 0
    for crime, count in counts.items():
        if count > best_count:
            best, best_count = crime, count
    return best, best_count


def pattern_score(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(count / total * SCORE_SCALE, SCORE_CAP)


def mean_hour(hours: Tuple[float, ...]) -> float:
    # divide first: large finite hours would overflow a plain sum
    n = len(hours)
    return math.fsum(h / n for h in hours)


def rank_time(agg: Aggregation) -> TimePattern:
    best = FALLBACK_TIME_PATTERN
    for bucket, tallies in agg.by_time_bucket.items():
        crime, count = dominant_crime({name: t.count for name, t in tallies.items()})
        probability = pattern_score(count, agg.total)
        if crime is None or probability <= best.probability:
            continue

        average_time = format_clock(mean_hour(tallies[crime].hours))
        best = TimePattern(
            time_range=bucket,
            crime_type=crime,
            probability=probability,
            description=f"{crime} is most likely during {bucket.value} at an average time of {average_time}",
            average_time=average_time,
        )
    return best


def rank_day(agg: Aggregation) -> DayPattern:
    best = FALLBACK_DAY_PATTERN
    for day_type, counts in agg.by_day_type.items():
        crime, count = dominant_crime(counts)
        probability = pattern_score(count, agg.total)
        if crime is None or probability <= best.probability:
            continue

        best = DayPattern(
            day_type=day_type,
            crime_type=crime,
            probability=probability,
            description=f"{crime} is more likely on {day_type.value}s",
        )
    return best


# ----------------------------
# Risk flags & advice
# ----------------------------

def find_high_risk_periods(agg: Aggregation) -> Tuple[HighRiskPeriod, ...]:
    """
    Checks Night then Weekend straight from the counts, regardless of which
    bucket won the ranking.
    """
    periods: List[HighRiskPeriod] = []

    night = agg.by_time_bucket.get(TimeBucket.NIGHT)
    if night:
        crime, count = dominant_crime({name: t.count for name, t in night.items()})
        if crime is not None and count > agg.total * NIGHT_RISK_SHARE:
            periods.append(HighRiskPeriod(period=TimeBucket.NIGHT.value, crime_type=crime, risk_level="High"))

    weekend = agg.by_day_type.get(DayType.WEEKEND)
    if weekend:
        crime, count = dominant_crime(weekend)
        if crime is not None and count > agg.total * WEEKEND_RISK_SHARE:
            periods.append(HighRiskPeriod(period=WEEKEND_PERIOD_LABEL, crime_type=crime, risk_level="High"))

    return tuple(periods)


def build_recommendations(
    time_pattern: TimePattern,
    day_pattern: DayPattern,
    high_risk_periods: Tuple[HighRiskPeriod, ...],
) -> Tuple[str, ...]:
    tips: List[str] = []
    if "Night" in time_pattern.time_range.value:
        tips.append("Avoid traveling alone during night hours (10 PM - 4 AM)")
    if day_pattern.day_type is DayType.WEEKEND:
        tips.append("Exercise extra caution on weekends, especially in crowded areas")
    if high_risk_periods:
        tips.append(f"Be particularly alert for {high_risk_periods[0].crime_type} during high-risk periods")
    tips.extend(CLOSING_TIPS)
    return tuple(tips)


# ----------------------------
# One-call convenience
# ----------------------------

def analyze_crime_patterns(records: Iterable[IncidentRecord]) -> PatternSummary:
    """
    Full summary for one city's incidents. Pure: same input, same output,
    and nothing is kept between calls. Empty input -> DEFAULT_SUMMARY.
    """
    agg = aggregate(records)
    if agg.total == 0:
        return DEFAULT_SUMMARY

    time_pattern = rank_time(agg)
    day_pattern = rank_day(agg)
    periods = find_high_risk_periods(agg)

    log.debug(
        "Analyzed %d incidents: time=%s/%s day=%s/%s high_risk=%d",
        agg.total,
        time_pattern.time_range.value,
        time_pattern.crime_type,
        day_pattern.day_type.value,
        day_pattern.crime_type,
        len(periods),
    )
    return PatternSummary(
        most_likely_time=time_pattern,
        most_likely_day=day_pattern,
        high_risk_periods=periods,
        recommendations=build_recommendations(time_pattern, day_pattern, periods),
    )
