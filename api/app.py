"""
FastAPI application for issuing and updating wallet passes.

    uvicorn api.app:app

Routes:
    POST /api/generate                                              new loyalty pass
    POST /api/v1/devices/{device}/registrations/{pass_type}/{serial}  register a device
    GET  /api/v1/passes/{pass_type}/{serial}                          latest package
    GET  /health

The web-service routes expect ``Authorization: ApplePass <token>``.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import APIError, api_error_handler, generic_error_handler, passkit_error_handler
from api.routes import devices, generate, health, passes
from core.schemas.errors import PassKitException


logging.basicConfig(
    level=getattr(logging, os.getenv("PKPASS_LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

ROUTERS = (health.router, generate.router, devices.router, passes.router)


def create_app() -> FastAPI:
    app = FastAPI(title="Wallet Pass Service", version="0.1.0", description=__doc__)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    for exc_type, handler in (
        (APIError, api_error_handler),
        (PassKitException, passkit_error_handler),
        (Exception, generic_error_handler),
    ):
        app.add_exception_handler(exc_type, handler)

    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("PKPASS_HOST", "127.0.0.1"), port=int(os.getenv("PKPASS_PORT", "8000")))
