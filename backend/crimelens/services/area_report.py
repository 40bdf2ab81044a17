# backend/crimelens/services/area_report.py
from __future__ import annotations

import csv
import logging
import math
import os
import re
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from shapely.geometry import Point, mapping

from crimelens import config
from crimelens.models.area import CityProperties, IntensityPercentiles, TopCrime
from crimelens.models.incident import IncidentRecord
from crimelens.services.pattern_analyzer import analyze_crime_patterns

log = logging.getLogger("crimelens.area_report")

TOP_CRIMES_LIMIT = 3
SAMPLE_RECORDS_LIMIT = 5

# "23:30", "23.30", "7", "11:30 PM", "11:30:00", or the time part of "01-01-2020 23:30"
_TIME_RE = re.compile(
    r"(?:^|\s)(\d{1,2})(?:[:.](\d{1,2}))?(?::\d{2})?\s*([AaPp])\.?[Mm]\.?$|(?:^|\s)(\d{1,2})(?:[:.](\d{1,2}))?(?::\d{2})?$"
)


# ---------- Field parsing ----------
def parse_time_of_occurrence(raw: Any) -> Optional[float]:
    """
    Normalize a CSV time cell to decimal hours (23:30 -> 23.5).
    Colon and dot separators both mean minutes; AM/PM is honoured.
    Returns None if the cell doesn't hold a usable time.
    """
    text = str(raw or "").strip()
    m = _TIME_RE.search(text)
    if not m:
        return None

    if m.group(1) is not None:
        hour, minute, meridiem = int(m.group(1)), int(m.group(2) or 0), m.group(3).upper()
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "P" else 0)
    else:
        hour, minute = int(m.group(4)), int(m.group(5) or 0)
        if hour > 23:
            return None

    if minute > 59:
        return None
    return hour + minute / 60.0


def _to_float(value: Any) -> Optional[float]:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _to_severity(value: Any) -> int:
    """Whole-number severity; missing, zero or garbage counts as 1."""
    f = _to_float(value)
    if f is None:
        return 1
    return int(f) or 1


# ---------- CSV ingestion ----------
def load_incident_rows(path: str) -> Iterator[Dict[str, str]]:
    """Stream CSV rows with trimmed values; rows without a City are skipped."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        for row in csv.DictReader(f):
            # short rows give None values, long rows a list under the None key
            clean = {k.strip(): v.strip() for k, v in row.items() if k and isinstance(v, str)}
            if clean.get("City"):
                yield clean


# ---------- Aggregation ----------
def _city_report(city: str, rows: List[Mapping[str, str]]) -> Optional[CityProperties]:
    count = len(rows)
    severities = [_to_severity(r.get("Severity")) for r in rows]
    avg_severity = sum(severities) / count
    intensity = avg_severity * math.log(1 + count)

    coords: List[Tuple[float, float]] = []
    for r in rows:
        lat, lon = _to_float(r.get("Latitude")), _to_float(r.get("Longitude"))
        if lat and lon:  # 0.0 means "not geocoded" in the feed
            coords.append((lat, lon))
    if not coords:
        log.warning("Skipping %s: no valid coordinates in %d rows", city, count)
        return None
    avg_lat = sum(c[0] for c in coords) / len(coords)
    avg_lon = sum(c[1] for c in coords) / len(coords)

    crime_counts: Dict[str, int] = {}
    for r in rows:
        crime = r.get("Crime") or "Unknown"
        crime_counts[crime] = crime_counts.get(crime, 0) + 1
    # sorted() is stable, so equal counts keep first-seen order
    top = sorted(crime_counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_CRIMES_LIMIT]

    samples = [
        {
            "Crime": r.get("Crime") or "Unknown",
            "Severity": sev,
            "Date.of.Occurrence": r.get("Date.of.Occurrence", ""),
        }
        for r, sev in list(zip(rows, severities))[-SAMPLE_RECORDS_LIMIT:]
    ]

    incidents: List[IncidentRecord] = []
    for r, sev in zip(rows, severities):
        hours = parse_time_of_occurrence(r.get("Time.of.Occurrence"))
        if hours is None:
            continue
        incidents.append(
            IncidentRecord(
                crime_type=r.get("Crime") or "Unknown",
                occurred_on_date=r.get("Date.of.Occurrence", ""),
                occurred_at_time=hours,
                severity=max(sev, 1),
            )
        )

    return CityProperties(
        city=city,
        latitude=avg_lat,
        longitude=avg_lon,
        count=count,
        avg_severity=round(avg_severity, 2),
        intensity_score=round(intensity, 2),
        top_crimes=[TopCrime(crime=c, count=n) for c, n in top],
        sample_records=samples,
        prediction=analyze_crime_patterns(incidents),
    )


def build_city_reports(rows: Iterable[Mapping[str, str]]) -> List[CityProperties]:
    """Group rows by City (first-seen order) and build one report per city."""
    by_city: Dict[str, List[Mapping[str, str]]] = {}
    for row in rows:
        city = (row.get("City") or "").strip()
        if city:
            by_city.setdefault(city, []).append(row)

    reports: List[CityProperties] = []
    for city, city_rows in by_city.items():
        report = _city_report(city, city_rows)
        if report is not None:
            reports.append(report)
    return reports


@lru_cache(maxsize=4)
def _cached_reports(path: str, mtime: float) -> Tuple[CityProperties, ...]:
    reports = tuple(build_city_reports(load_incident_rows(path)))
    log.info("Loaded %d city reports from %s", len(reports), path)
    return reports


def get_city_reports(path: Optional[str] = None) -> Tuple[CityProperties, ...]:
    """City reports for the incidents CSV; rebuilt only when the file changes."""
    path = path or config.CITIES_CSV
    return _cached_reports(path, os.path.getmtime(path))


# ---------- Lookups & derived stats ----------
def find_city(reports: Iterable[CityProperties], name: str) -> Optional[CityProperties]:
    wanted = name.strip().lower()
    for report in reports:
        if report.city.lower() == wanted:
            return report
    return None


def intensity_percentiles(reports: Iterable[CityProperties]) -> IntensityPercentiles:
    """Scores at the top 20% / 50% / 80% marks of the descending intensity list."""
    scores = sorted((r.intensity_score for r in reports), reverse=True)
    n = len(scores)

    def _at(share: float) -> float:
        return scores[math.floor(n * share)] if n else 0.0

    return IntensityPercentiles(top_20=_at(0.2), top_50=_at(0.5), top_80=_at(0.8))


def build_feature_collection(reports: Iterable[CityProperties]) -> Dict[str, Any]:
    """GeoJSON FeatureCollection of city centroids for the heat/choropleth map."""
    features = []
    for report in reports:
        features.append({
            "type": "Feature",
            "geometry": mapping(Point(report.longitude, report.latitude)),  # GeoJSON is (lng, lat)
            "properties": report.model_dump(mode="json", by_alias=True),
        })
    return {"type": "FeatureCollection", "features": features}
