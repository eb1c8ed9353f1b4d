# backend/csystem/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from csystem import auth, config
from csystem.db import Base, engine
from csystem.exceptions import CsystemError
from csystem.logging_config import request_logging_middleware, setup_logging

# Import routers
from csystem.routers import (
    assessments,
    clubs,
    documents,
    modules,
    profile,
    shipping
)

setup_logging()
logger = logging.getLogger(__name__)

# ---------------------------
# Create database tables
# ---------------------------
# This will create all tables from models.py if they don't exist
Base.metadata.create_all(bind=engine)

# ---------------------------
# FastAPI app initialization
# ---------------------------
app = FastAPI(
    title="Csystem",
    description="Membership, profile, club affiliation and assessment module API for the archery federation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ---------------------------
# CORS setup
# ---------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

app.middleware("http")(request_logging_middleware)


# ---------------------------
# Error responses
# ---------------------------
@app.exception_handler(CsystemError)
async def csystem_error_handler(request: Request, exc: CsystemError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------
# Include routers
# ---------------------------
routers = [
    auth.router,
    profile.router,
    clubs.router,
    modules.router,
    assessments.router,
    documents.router,
    shipping.router
]

for r in routers:
    app.include_router(r, prefix="/api")


# ---------------------------
# Root endpoint
# ---------------------------
@app.get("/", tags=["Root"])
def root():
    return {"message": "Welcome to Csystem API"}
