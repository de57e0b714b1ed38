"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import reports, scan, schedules, statistics, subjects

api_router = APIRouter()

# Kiosk card scans
api_router.include_router(scan.router)

# Students, teachers, event history
api_router.include_router(subjects.router)

# Class schedules
api_router.include_router(schedules.router)

# Attendance statistics
api_router.include_router(statistics.router)

# Report rows, CSV export, health
api_router.include_router(reports.router)
