"""
Job Search Insights API - Main Application Entry Point

This module initializes the FastAPI application with:
- Logging configured from settings
- CORS middleware for frontend communication
- Prometheus metrics middleware and scrape endpoint
- API router registration

Architecture:
    FastAPI App
    ├── CORS Middleware (localhost:3000)
    ├── Prometheus Middleware (/metrics)
    └── API Router
        └── /analytics
            ├── POST /report    - Full analytics report
            ├── POST /funnel    - Funnel counts and rates
            ├── POST /forecast  - Milestone timeline
            └── POST /scenarios - Strategy comparison

The analytics core is stateless: every request carries the records it
needs, so there is no database or scheduler to manage.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from insights.api import api_router
from insights.config import get_settings
from insights.middleware.metrics import setup_metrics

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Job Search Insights API",
    description="Success analytics, forecasting and recommendations for a job search",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app, app_name=settings.app_name)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
