from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from revenue_pulse.core.config import settings
from revenue_pulse.routers import analytics

OPENAPI_TAGS = [
    {"name": "Analytics", "description": "Subscription and revenue metrics for the dashboard."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Dashboard metrics derived from Whop memberships, payments, products and plans: "
        "MRR, churn, new subscriptions, daily revenue and top products."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
