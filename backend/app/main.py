"""FastAPI application entry point."""

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from app.config import settings
from app.api import deliveries, health, rules, submissions, webhooks
from app.middleware.auth import create_admin_token
from app.middleware.cors import PopupCORSMiddleware

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

app = FastAPI(
    title=settings.app_name,
    description="Form submission rules and webhook delivery for on-site popups",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS - popups post from any customer site
app.add_middleware(
    PopupCORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Mount routers
app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(submissions.router, prefix=settings.api_prefix)
app.include_router(webhooks.router, prefix=settings.api_prefix)
app.include_router(rules.router, prefix=settings.api_prefix)
app.include_router(deliveries.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    email: str


@app.post(f"{settings.api_prefix}/auth/login", response_model=LoginResponse)
async def login(req: LoginRequest):
    """Simple admin login. Returns JWT token."""
    if req.email == settings.admin_email and req.password == settings.admin_password:
        token = create_admin_token(req.email)
        return LoginResponse(token=token, email=req.email)
    raise HTTPException(status_code=401, detail="Invalid credentials")
