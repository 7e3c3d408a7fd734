"""
Pushes local profiles to the upstream matching service
"""
from typing import Any, Dict, List, Union
from urllib.parse import urlsplit

from match_patrol.models.profile import Profile, SyncOutcome, SyncPayload
from match_patrol.services import upstream
from match_patrol.utils.config import WRITE_TIMEOUT
from match_patrol.utils.exceptions import SyncPushFailed, UpstreamUnavailable, ValidationError
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_INDUSTRY = "Technology"
UPDATE_USER_PATH = "/update-user/"
UPDATE_URLS_PATH = "/update-urls/"


def extract_domain(url: str) -> str:
    """Hostname of a career page URL without a leading ``www.``; unparseable input comes back as is."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return url
    if not hostname:
        return url
    return hostname[4:] if hostname.startswith("www.") else hostname


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_object(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def build_sync_payload(profile: Union[Profile, Dict[str, Any]]) -> SyncPayload:
    """Shape a profile into the body the upstream update-user endpoint expects."""
    if isinstance(profile, Profile):
        details = profile.model_dump()
    else:
        details = _as_object(profile)

    user_id = details.get("displayId") or ""
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("user_id must be a non-empty string", field="displayId", value=user_id)

    preferences = _as_object(details.get("jobPreferences"))
    industry = preferences.get("preferredIndustry")
    if not industry or not isinstance(industry, str):
        industry = DEFAULT_INDUSTRY

    links = [str(url) for url in _as_list(preferences.get("companyCareerPageUrls")) if url]

    return SyncPayload(
        user_id=user_id,
        industry=industry,
        domains=[extract_domain(url) for url in links],
        details=details,
        links=links,
    )


class ExternalSyncClient:
    """Sends a profile to ``/update-user/`` and its career links to ``/update-urls/``."""

    def __init__(self, timeout: float = WRITE_TIMEOUT):
        self.timeout = timeout

    async def push(self, profile: Union[Profile, Dict[str, Any]]) -> SyncOutcome:
        payload = build_sync_payload(profile)

        try:
            await upstream.apost_json(UPDATE_USER_PATH, payload.model_dump(), self.timeout)
        except UpstreamUnavailable as e:
            logger.error(f"Profile push failed for {payload.user_id}: {e.message}")
            raise SyncPushFailed(f"Failed to push profile {payload.user_id}", display_id=payload.user_id,
                                 cause=e) from e

        logger.info(f"Pushed profile {payload.user_id} upstream")

        if not payload.links:
            return SyncOutcome(pushed=True)

        try:
            await upstream.apost_json(UPDATE_URLS_PATH, {"link": payload.links}, self.timeout)
        except UpstreamUnavailable as e:
            logger.warning(f"Career link push failed for {payload.user_id}: {e.message}")
            return SyncOutcome(pushed=True, links_pushed=False, error=e.message)

        return SyncOutcome(pushed=True, links_pushed=True)
