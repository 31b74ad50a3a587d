"""
Proactive Notification API

Single FastAPI application with route groups:
- /api/proactive: proactive notification evaluation + feedback

The push sweep runs separately as a cron job (jobs/proactive_push.py).
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging - ensure INFO level logs are visible
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes import proactive

app = FastAPI(
    title="Proactive Notification API",
    description="Decides which proactive notifications a user sees",
    version="1.0.0",
)

# CORS - allow frontend origins (comma-separated)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}


# Mount routers
app.include_router(proactive.router, prefix="/api/proactive", tags=["proactive"])
