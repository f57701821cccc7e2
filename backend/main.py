"""
EduBulletin — Report Card Computation Engine
FastAPI backend entry point.
"""

import os
import logging
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment before routes read their defaults
load_dotenv()

from routes.bulletins import router as bulletins_router  # noqa: E402
from routes.grading import router as grading_router  # noqa: E402

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
DEFAULT_LANGUAGE = os.getenv("BULLETIN_LANGUAGE", "fr")
DEFAULT_TRACK = os.getenv("BULLETIN_TRACK", "general")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="EduBulletin API",
    description=(
        "Report card computation — cotes, competency bands, weighted averages "
        "and annual rollups in French and English."
    ),
    version="1.0.0",
)

# CORS — allow the web client dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": {"code": "INTERNAL_ERROR", "message": str(exc)},
            "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
    )


# Register route modules
app.include_router(bulletins_router, prefix="/api/bulletins", tags=["Bulletins"])
app.include_router(grading_router, prefix="/api/grading", tags=["Grading"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "default_language": DEFAULT_LANGUAGE,
        "default_track": DEFAULT_TRACK,
    }
