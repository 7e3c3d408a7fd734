"""
Forwards match, recommendation, statistics and user-detail requests to the
upstream matching service, answering from canned data when it is unavailable.
"""
import time
from typing import Any, Dict, Optional, Tuple

import requests

from match_patrol.models.gateway import (
    MatchResultsRequest,
    RecommendedResultsRequest,
    StatisticsRequest,
    UpdateUserRequest,
)
from match_patrol.services import fallbacks, upstream
from match_patrol.utils.config import READ_TIMEOUT, WRITE_TIMEOUT
from match_patrol.utils.exceptions import UpstreamUnavailable, ValidationError
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

SOURCE_LIVE = "live"
SOURCE_FALLBACK = "fallback"

DEFAULT_INDUSTRY = "Technology"


def require_user_id(value: Any, field: str = "user_id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required and must be a non-empty string", field=field, value=value)
    return value.strip()


def coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field, value=value)
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be an integer", field=field, value=value)


def clean_domain(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def build_match_payload(request: MatchResultsRequest) -> Dict[str, Any]:
    payload = {
        "user_id": require_user_id(request.user_id),
        "offset": coerce_int(request.offset, "offset"),
        "limit": coerce_int(request.limit, "limit"),
    }
    domain = clean_domain(request.domain)
    if domain:
        payload["domain"] = domain
    return payload


def _message_list(body: Any, path: str) -> list:
    if not isinstance(body, dict):
        raise UpstreamUnavailable(f"Upstream {path} returned a malformed body", endpoint=path)
    message = body.get("message")
    if message is None:
        return []
    if not isinstance(message, list):
        raise UpstreamUnavailable(f"Upstream {path} returned a non-list message", endpoint=path)
    return message


def normalize_user_detail(body: Any) -> Dict[str, Any]:
    """Guarantee ``message.domains`` is a list; a ``domain`` field, when present, wins."""
    if not isinstance(body, dict) or not isinstance(body.get("message"), dict):
        raise UpstreamUnavailable("Upstream user detail returned a malformed body", endpoint="/get-user-detail/")

    message = body["message"]
    raw = message.get("domain") or message.get("domains")
    if isinstance(raw, list):
        domains = raw
    elif isinstance(raw, str) and raw:
        domains = [raw]
    else:
        domains = []
    message["domains"] = domains
    return body


async def update_user(request: UpdateUserRequest) -> Any:
    """Forward a profile write; there is no fallback, failures surface as 500."""
    payload = {
        "user_id": require_user_id(request.user_id),
        "industry": str(request.industry or DEFAULT_INDUSTRY),
        "domains": request.domains if isinstance(request.domains, list) else [],
        "details": request.details if isinstance(request.details, dict) else {},
        "links": request.links if isinstance(request.links, list) else [],
    }
    try:
        return await upstream.apost_json("/update-user/", payload, WRITE_TIMEOUT)
    except UpstreamUnavailable as e:
        logger.error(f"Error updating user {payload['user_id']}: {e.message}")
        raise UpstreamUnavailable("Failed to update user", endpoint="/update-user/",
                                  status_code=e.status_code, cause=e, http_status=500) from e


async def _fetch_jobs(path: str, payload: Dict[str, Any], fallback) -> Dict[str, Any]:
    try:
        body = await upstream.apost_json(path, payload, READ_TIMEOUT)
        results = _message_list(body, path)
    except UpstreamUnavailable as e:
        jobs = fallback(payload.get("domain"))
        logger.warning(
            f"Upstream {path} failed ({e.message}); serving {len(jobs)} fallback jobs "
            f"for domain '{payload.get('domain') or 'all'}'"
        )
        return {"message": jobs, "source": SOURCE_FALLBACK}

    logger.info(f"Upstream {path} returned {len(results)} results for domain '{payload.get('domain') or 'all'}'")
    return {"message": results, "source": SOURCE_LIVE}


async def match_results(request: MatchResultsRequest) -> Dict[str, Any]:
    payload = build_match_payload(request)
    return await _fetch_jobs("/get-match-results/", payload, fallbacks.fallback_matches)


async def recommended_results(request: RecommendedResultsRequest) -> Dict[str, Any]:
    payload = build_match_payload(request)
    return await _fetch_jobs("/get-recommended-match-results/", payload, fallbacks.fallback_recommended)


async def match_statistics(request: StatisticsRequest) -> Dict[str, Any]:
    payload = {"user_id": require_user_id(request.user_id)}
    try:
        body = await upstream.apost_json("/get-match-statistics/", payload, READ_TIMEOUT)
        if not isinstance(body, dict):
            raise UpstreamUnavailable("Upstream statistics returned a malformed body",
                                      endpoint="/get-match-statistics/")
    except UpstreamUnavailable as e:
        logger.warning(f"Upstream statistics failed ({e.message}); serving fallback statistics")
        return {**fallbacks.fallback_statistics(), "source": SOURCE_FALLBACK}
    return {**body, "source": SOURCE_LIVE}


async def user_detail(display_id: Optional[str]) -> Dict[str, Any]:
    display_id = require_user_id(display_id, field="displayId")
    try:
        body = await upstream.apost_json("/get-user-detail/", {"user_id": display_id}, WRITE_TIMEOUT)
        body = normalize_user_detail(body)
    except UpstreamUnavailable as e:
        logger.warning(f"Upstream user detail failed for {display_id} ({e.message}); serving fallback skeleton")
        return {**fallbacks.fallback_user_detail(display_id), "source": SOURCE_FALLBACK}

    logger.info(f"Fetched user detail for {display_id} with {len(body['message']['domains'])} domains")
    return {**body, "source": SOURCE_LIVE}


async def probe_upstream() -> Any:
    """Hit the upstream health endpoint; raises ``UpstreamUnavailable`` when it is down."""
    return await upstream.aget_json("/health", READ_TIMEOUT)


def _response_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


async def debug_user_detail(display_id: Optional[str]) -> Tuple[bool, Dict[str, Any]]:
    """Call ``/get-user-detail/`` directly and report the exchange without fallback or normalisation.

    Returns ``(ok, report)``; ``ok`` is False for transport errors and non-2xx answers.
    """
    display_id = require_user_id(display_id, field="displayId")
    path = "/get-user-detail/"
    payload = {"user_id": display_id}
    report: Dict[str, Any] = {
        "debug": True,
        "requestUrl": upstream.upstream_url(path),
        "requestMethod": "POST",
        "requestPayload": payload,
    }

    start = time.perf_counter()
    try:
        resp = await upstream.asend_raw("POST", path, payload, WRITE_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Debug user detail for {display_id} failed: {e}")
        report.update({"error": str(e), "code": e.__class__.__name__})
        return False, report
    elapsed_ms = round((time.perf_counter() - start) * 1000)

    body = _response_body(resp)
    logger.info(f"Debug user detail for {display_id}: {resp.status_code} in {elapsed_ms}ms")
    if resp.status_code >= 400:
        report.update({
            "error": f"Upstream answered {resp.status_code}",
            "status": resp.status_code,
            "statusText": resp.reason,
            "responseData": body,
        })
        return False, report

    report.update({
        "responseTime": elapsed_ms,
        "responseStatus": resp.status_code,
        "responseHeaders": dict(resp.headers),
        "responseData": body,
    })
    return True, report
