import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from cadence.core.config import settings
from cadence.routers import (
    portal,
    save_flows,
    selling_plans,
    subscription_analytics,
    subscription_settings,
    subscriptions,
    validations,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Subscriptions", "description": "Browse subscriptions and change their lifecycle."},
    {"name": "Settings", "description": "Per-tenant subscription policies and portal toggles."},
    {"name": "Save Flows", "description": "Retention flows, save attempts and their results."},
    {"name": "Validations", "description": "Integrity checks, issues and auto-fixes."},
    {"name": "Selling Plans", "description": "Subscription pricing plans and discounts."},
    {"name": "Analytics", "description": "MRR, churn, cohorts and growth."},
    {"name": "Portal", "description": "Customer self-service over their own subscriptions."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Subscription lifecycle and retention engine. "
        "Manage subscriptions, retention save flows, integrity validation "
        "and selling plans."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(subscriptions.router, prefix="/v1/subscriptions", tags=["Subscriptions"])
app.include_router(
    subscription_settings.router,
    prefix="/v1/subscription_settings",
    tags=["Settings"],
)
app.include_router(save_flows.router, prefix="/v1/save_flows", tags=["Save Flows"])
app.include_router(validations.router, prefix="/v1/validations", tags=["Validations"])
app.include_router(selling_plans.router, prefix="/v1/selling_plans", tags=["Selling Plans"])
app.include_router(
    subscription_analytics.router,
    prefix="/v1/subscription_analytics",
    tags=["Analytics"],
)
app.include_router(portal.router, prefix="/v1/portal", tags=["Portal"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
