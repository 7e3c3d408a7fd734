from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from match_patrol.models.profile import Profile, SessionResponse, SyncOutcome, UserIdentity
from match_patrol.services.profile_repository import ProfileRepository
from match_patrol.services.profile_store import get_profile_store
from match_patrol.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter(prefix="/api", tags=["profiles"])
logger = get_logger(__name__)


def get_profile_repository() -> ProfileRepository:
    return ProfileRepository(get_profile_store())


@router.post("/session", response_model=SessionResponse)
async def start_session(identity: UserIdentity, request: Request,
                        repo: ProfileRepository = Depends(get_profile_repository)):
    """Initialize a signed-in user's session: create the profile on first login, then load it"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Session start for {identity.uid}", extra={"request_id": request_id})

    with PerformanceMonitor("start_session", logger):
        _, created, sync = await repo.create_if_absent(identity)
        profile = await repo.get(identity.uid)

    return SessionResponse(profile=profile, created=created, sync=sync)


@router.get("/profile/{uid}", response_model=Profile)
async def get_profile(uid: str, repo: ProfileRepository = Depends(get_profile_repository)):
    """Stored profile; domains are inferred when none are stored"""
    return await repo.get(uid)


@router.patch("/profile/{uid}", response_model=Profile)
async def update_profile(uid: str, patch: Dict[str, Any] = Body(...),
                         repo: ProfileRepository = Depends(get_profile_repository)):
    """Merge a partial profile into storage"""
    return await repo.update(uid, patch)


@router.post("/profile/{uid}/sync", response_model=SyncOutcome)
async def sync_profile(uid: str, repo: ProfileRepository = Depends(get_profile_repository)):
    """Push the stored profile to the matching service"""
    return await repo.push(uid)


@router.post("/profile/{uid}/refresh-domains", response_model=Profile)
async def refresh_domains(uid: str, repo: ProfileRepository = Depends(get_profile_repository)):
    """Adopt the matching service's domains for this profile when it has any"""
    return await repo.refresh_domains(uid)
