"""
HTTP API (FastAPI)

- POST /api/generate - Issue a new pass
- POST /api/v1/devices/{device}/registrations/{pass_type}/{serial} - Register device
- GET /api/v1/passes/{pass_type}/{serial} - Latest pass
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
