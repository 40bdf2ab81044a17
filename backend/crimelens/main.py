# backend/crimelens/main.py
from __future__ import annotations

import os
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import RedirectResponse

from crimelens import config  # loads .env before anything reads os.getenv
from crimelens.routes.alerts import router as alerts_router
from crimelens.routes.areas import router as areas_router
from crimelens.routes.auth import router as auth_router

log = logging.getLogger("uvicorn.error")

# Optional global API prefix (e.g., "/api")
_API_PREFIX = os.getenv("API_PREFIX", "").strip()
if _API_PREFIX:
    if not _API_PREFIX.startswith("/"):
        _API_PREFIX = "/" + _API_PREFIX
    # avoid trailing slash so paths look like /api/areas (not //areas)
    _API_PREFIX = _API_PREFIX.rstrip("/")

app = FastAPI(
    title="CrimeLens API",
    version="1.0.0",
    description="Backend for CrimeLens (area heatmap, crime patterns, OTP login, SOS alerts).",
)

# ---------------- CORS ----------------
# Prefer explicit origins via CORS_ORIGINS="https://app.example.com,https://staging.example.com"
# For local dev we allow any localhost/127.0.0.1 on any port.
cors_env = os.getenv("CORS_ORIGINS")
cors_kwargs = dict(allow_methods=["*"], allow_headers=["*"])

if cors_env:
    allow_origins = [o.strip() for o in cors_env.split(",") if o.strip()]
    cors_kwargs.update(allow_origins=allow_origins, allow_credentials=True)
else:
    cors_kwargs.update(
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
    )

app.add_middleware(CORSMiddleware, **cors_kwargs)
log.info("CORS configured: %s", cors_kwargs)

# ---------------- Routers ----------------
# Each router carries its own prefix (/areas, /auth); _API_PREFIX goes in front.
app.include_router(areas_router, prefix=_API_PREFIX)
app.include_router(auth_router, prefix=_API_PREFIX)
app.include_router(alerts_router, prefix=_API_PREFIX)

log.info("Demo mode: %s, SMS enabled: %s, incidents CSV: %s",
         config.DEMO_MODE, config.SMS_ENABLED, config.CITIES_CSV)


# ---------------- Meta/utility ----------------
@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    # Visiting the root opens Swagger UI
    return RedirectResponse(url="/docs")


@app.get(f"{_API_PREFIX or ''}/health", tags=["meta"])
def health():
    return {"status": "ok", "prefix": _API_PREFIX or "", "demo_mode": config.DEMO_MODE}


# ---------------- Local dev entrypoint ----------------
def run() -> None:
    import uvicorn
    uvicorn.run(
        "crimelens.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    run()
