"""
Forward Email Relay API
FastAPI application that relays form submissions to a fixed mailbox.
"""

import logging
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.mail import close_mail_channel
from app.routers import forward_email

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

app = FastAPI(
    title="Forward Email Relay",
    description="Relays arbitrary form submissions as HTML email notifications",
    version=API_VERSION,
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Origins are read from the CORS_ORIGINS environment variable as a
    comma-separated list, e.g.:
        CORS_ORIGINS=https://example.com,https://www.example.com

    Defaults to ["*"] when unset so that any site's form can post to the
    relay. Duplicates are removed while preserving order.
    """
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if not cors_env:
        return ["*"]

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in cors_env.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(forward_email.router, prefix="/api/forward-email", tags=["forward-email"])


@app.on_event("shutdown")
async def close_mail_connections() -> None:
    """Quit pooled SMTP connections when the server stops."""
    await close_mail_channel()
    logger.info("Mail channel closed")


@app.get("/")
async def root():
    return {"message": "Forward Email Relay", "version": API_VERSION}


@app.get("/health")
async def health():
    return {"status": "ok"}
