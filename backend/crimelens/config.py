"""CrimeLens backend: configuration read from the environment (.env supported)."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Repo root (two levels up from backend/crimelens/)
_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(_ROOT / ".env")

# ── AWS ──
AWS_REGION = os.getenv("AWS_REGION", "ap-south-1")
USERS_TABLE = os.getenv("USERS_TABLE", "Users")
OTPS_TABLE = os.getenv("OTPS_TABLE", "Otps")

# ── SMS (SNS) ──
SNS_SENDER_ID = os.getenv("SNS_SENDER_ID", "CrimeLens")
SNS_SMS_TYPE = os.getenv("SNS_SMS_TYPE", "Transactional")  # or 'Promotional'
SMS_ENABLED = os.getenv("SMS_ENABLED", "false").strip().lower() == "true"

# Demo mode stays on unless explicitly set to "false"
DEMO_MODE = os.getenv("DEMO_MODE", "true").strip().lower() != "false"
DEMO_OTPS = ("demo", "123456")
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "10"))

# ── Data ──
CITIES_CSV = os.getenv("CITIES_CSV", str(_ROOT / "data" / "cities.csv"))

# ── Alerts ──
ALERT_SEVERITY_THRESHOLD = float(os.getenv("ALERT_SEVERITY_THRESHOLD", "2.0"))
