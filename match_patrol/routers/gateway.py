from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from match_patrol.models.gateway import (
    MatchResultsRequest,
    RecommendedResultsRequest,
    StatisticsRequest,
    UpdateUserRequest,
)
from match_patrol.services import match_gateway
from match_patrol.utils.exceptions import UpstreamUnavailable
from match_patrol.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter(prefix="/api", tags=["gateway"])
logger = get_logger(__name__)


@router.get("/health")
async def health():
    """Health check"""
    return {"status": "OK", "timestamp": datetime.utcnow().isoformat() + "Z"}


@router.get("/test-external")
async def test_external():
    """Test external API connectivity"""
    try:
        data = await match_gateway.probe_upstream()
    except UpstreamUnavailable as e:
        logger.error(f"External API test failed: {e.message}")
        return JSONResponse(
            status_code=503,
            content={"status": "External API unreachable", "error": e.message},
        )
    return {"status": "External API reachable", "response": data}


@router.post("/update-user")
async def update_user(payload: UpdateUserRequest):
    """Forward a user profile to the matching service"""
    with PerformanceMonitor("update_user", logger, threshold_ms=10000):
        return await match_gateway.update_user(payload)


@router.get("/get-user/{displayId}")
async def get_user(displayId: str, request: Request):
    """User detail from the matching service, or a fallback skeleton"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Fetching user data for displayId: {displayId}", extra={"request_id": request_id})
    return await match_gateway.user_detail(displayId)


@router.post("/get-match-results/")
async def get_match_results(payload: MatchResultsRequest, request: Request):
    """Matched jobs, optionally filtered by domain"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"Match results request for {payload.user_id} (domain='{payload.domain or 'all'}')",
        extra={"request_id": request_id}
    )
    with PerformanceMonitor("get_match_results", logger, threshold_ms=5000):
        return await match_gateway.match_results(payload)


@router.post("/get-recommended-match-results/")
async def get_recommended_match_results(payload: RecommendedResultsRequest):
    """Recommended jobs, optionally filtered by domain"""
    with PerformanceMonitor("get_recommended_match_results", logger, threshold_ms=5000):
        return await match_gateway.recommended_results(payload)


@router.post("/get-match-statistics/")
async def get_match_statistics(payload: StatisticsRequest):
    """Aggregate match counters for a user"""
    return await match_gateway.match_statistics(payload)


@router.get("/debug/external-user/{displayId}")
async def debug_external_user(displayId: str):
    """Raw upstream user-detail exchange, for diagnosing the matching service"""
    ok, report = await match_gateway.debug_user_detail(displayId)
    if not ok:
        return JSONResponse(status_code=500, content=report)
    return report
