"""
FastAPI route handlers for the price endpoints.
Maps classified domain errors onto HTTP status codes.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from eprice.config import settings
from eprice.container import Services
from eprice.exceptions import ApiError, ApiErrorKind, InvalidArgumentError
from eprice.logging_config import get_logger
from eprice.models.price import ErrorResponse, PriceData, RollingAverageResult, ServiceStats

logger = get_logger(__name__)

router = APIRouter()


def get_services(request: Request) -> Services:
    """Services assembled at startup and attached to the application."""
    return request.app.state.services


def error_response(error: Exception) -> JSONResponse:
    """
    Map a domain error to an HTTP response.
    """
    if isinstance(error, ApiError):
        match error.kind:
            case ApiErrorKind.TIMEOUT:
                status, body = 504, ErrorResponse(error=error.message, details=error.details)
            case ApiErrorKind.SERVER | ApiErrorKind.NETWORK:
                status, body = 502, ErrorResponse(error=error.message, details=error.details)
            case ApiErrorKind.PARSING | ApiErrorKind.UNKNOWN:
                status, body = 500, ErrorResponse(error="An internal server error occurred.", details=error.details)
            case ApiErrorKind.NO_DATA_FOUND:
                status, body = 404, ErrorResponse(error="No data found", details=error.details)
            case ApiErrorKind.UNSUPPORTED_COUNTRY:
                status, body = 400, ErrorResponse(error="Unsupported country", details=error.details)
    elif isinstance(error, InvalidArgumentError):
        status, body = 400, ErrorResponse(error="Bad request", details=str(error))
    else:
        status, body = 500, ErrorResponse(error="An unexpected error occurred.", details=str(error))

    return JSONResponse(status_code=status, content=body.model_dump())


@router.get("/health")
async def health_check():
    """
    Liveness probe for monitoring and load balancers.
    """
    return {"status": "UP"}


@router.get("/api")
async def api_root():
    return "All good"


@router.get("/api/stats", response_model=ServiceStats)
async def get_stats(services: Services = Depends(get_services)):
    """
    Request counters and uptime since the process started.
    """
    return services.monitor.get_stats()


@router.get("/api/cache/clear")
async def clear_caches(services: Services = Depends(get_services)):
    """
    Clear the price series cache and the daily average cache.

    A GET so it can be invoked from a browser. Disk deletes happen in the
    background and never fail this request.
    """
    services.price_service.clear_caches()
    logger.info("Cache clear requested and initiated for all caches")
    return {"status": "All caches clear initiated"}


@router.get("/api/prices", response_model=List[PriceData])
async def get_default_prices(services: Services = Depends(get_services)):
    """
    Prices for the default country from yesterday until the end of tomorrow.
    """
    return await _prices_for(settings.default_country_code, services)


@router.get("/api/prices/{country_code}", response_model=List[PriceData])
async def get_prices(country_code: str, services: Services = Depends(get_services)):
    """
    Prices for a country from yesterday until the end of tomorrow.

    Returns an empty list when neither upstream has data for the window.
    """
    return await _prices_for(country_code, services)


@router.get("/api/prices/{country_code}/rolling-average-30d", response_model=RollingAverageResult)
async def get_rolling_average(country_code: str, services: Services = Depends(get_services)):
    """
    Average daily price over the 30 days ending yesterday.

    Raises:
        404 if no day in the window has data, 400 for unsupported countries,
        502/504 for upstream failures.
    """
    country_code = country_code.upper()
    try:
        return await services.rolling_average_service.execute(country_code, settings.rolling_average_days)
    except (ApiError, InvalidArgumentError) as e:
        logger.error("Error fetching rolling average", country_code=country_code, error=str(e))
        return error_response(e)
    except Exception as e:
        logger.exception("Unexpected error", country_code=country_code, error=str(e))
        return error_response(e)


async def _prices_for(country_code: str, services: Services):
    country_code = country_code.upper()
    try:
        prices = await services.price_service.get_current_prices(country_code)
    except ApiError as e:
        logger.error("Error fetching prices", country_code=country_code, kind=e.kind.value, error=str(e))
        return error_response(e)
    except Exception as e:
        logger.exception("Unexpected error", country_code=country_code, error=str(e))
        return error_response(e)

    return [PriceData.from_point(point) for point in prices]
