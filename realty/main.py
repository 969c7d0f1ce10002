"""Realty agent lifecycle - FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from realty.config import get_settings
from realty.database import Base, engine
# Import models so Base.metadata has all tables before create_all
from realty.models import (  # noqa: F401
    User, Agent, AgentSuspension, Landlord, Property, Tenant,
    AgentInvitation, AuditLog, Payment, PasswordReset,
)
from realty.routers import admin, agent, auth, landlord_agents, landlord_properties

log = logging.getLogger("uvicorn.error")

settings = get_settings()
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(landlord_agents.router)
app.include_router(landlord_properties.router)
app.include_router(agent.router)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})
    return JSONResponse(status_code=400, content={"error": "Validation error", "details": details})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
def startup():
    if not (settings.mailgun_api_key and settings.mailgun_domain) and not settings.sendgrid_api_key:
        log.warning("[Email] Not configured - invitation and reset emails will be skipped; set MAILGUN_API_KEY and MAILGUN_DOMAIN in .env")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        log.warning("Database startup failed (tables skipped). Check DATABASE_URL and network. Error: %s", e)


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.post("/db-setup")
def db_setup():
    """Dev/demo only: create tables if the database is now reachable."""
    try:
        Base.metadata.create_all(bind=engine)
        return {"status": "ok", "message": "Tables created."}
    except Exception as e:
        log.exception("db-setup failed")
        return JSONResponse(status_code=500, content={"status": "error", "message": str(e)})
