import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from revenue_pulse.core.config import Settings, settings
from revenue_pulse.schemas.analytics import AnalyticsResponse, ErrorResponse
from revenue_pulse.services.analytics_service import AnalyticsService, build_error
from revenue_pulse.services.data_source import DataSource, WhopDataSource

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings() -> Settings:
    return settings


async def get_data_source() -> AsyncGenerator[DataSource, None]:
    source = WhopDataSource()
    try:
        yield source
    finally:
        await source.close()


def get_analytics_service(
    data_source: DataSource = Depends(get_data_source),
    config: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(data_source, config)


@router.get(
    "",
    response_model=AnalyticsResponse,
    summary="Get dashboard analytics",
    responses={500: {"model": ErrorResponse, "description": "Configuration or fetch failure"}},
)
async def get_analytics(
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse | JSONResponse:
    """MRR, churn, new and active subscribers, 90-day revenue trend and top products."""
    try:
        return await service.get_analytics()
    except Exception as exc:
        logger.exception("Error fetching analytics data")
        return JSONResponse(status_code=500, content=build_error(exc).model_dump())
