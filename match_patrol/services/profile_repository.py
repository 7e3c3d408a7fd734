"""
Profile Repository: first-login creation, reads with domain inference, partial updates
"""
from typing import Any, Dict, Optional, Tuple

from match_patrol.models.profile import Profile, SyncOutcome, UserIdentity, empty_profile
from match_patrol.services import match_gateway
from match_patrol.services.domain_inference import infer_domains
from match_patrol.services.identity import IdentityAllocator
from match_patrol.services.profile_store import ProfileExists
from match_patrol.services.sync_client import ExternalSyncClient
from match_patrol.utils.exceptions import MatchPatrolError, ProfileNotFound
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)


class ProfileRepository:
    """Owns the local profile and keeps it in step with the matching service"""

    def __init__(self, store, allocator: Optional[IdentityAllocator] = None,
                 sync_client: Optional[ExternalSyncClient] = None):
        self.store = store
        self.allocator = allocator or IdentityAllocator(store)
        self.sync_client = sync_client or ExternalSyncClient()

    async def create_if_absent(self, identity: UserIdentity) -> Tuple[Profile, bool, Optional[SyncOutcome]]:
        """Return ``(profile, created, sync)``.

        An existing profile is returned unchanged, except that one missing its
        displayId is repaired. A new profile gets a fresh displayId and a
        best-effort push upstream whose failure lands in ``sync``.
        """
        stored = await self.store.get_profile(identity.uid)
        if stored is not None:
            profile = Profile.model_validate(stored)
            if not profile.displayId:
                logger.warning(f"Profile {identity.uid} has no displayId, repairing")
                profile.displayId = await self.allocator.repair(identity)
            return profile, False, None

        skeleton = empty_profile(identity.email)
        try:
            display_id = await self.allocator.allocate(identity, skeleton)
        except ProfileExists:
            logger.info(f"Profile {identity.uid} was created concurrently, using stored copy")
            stored = await self.store.get_profile(identity.uid)
            if stored is None:
                raise ProfileNotFound(identity.uid)
            return Profile.model_validate(stored), False, None

        profile = skeleton.model_copy(update={"displayId": display_id})
        return profile, True, await self.push_quietly(profile)

    async def load(self, uid: str) -> Optional[Profile]:
        """Stored profile with inferred domains when none are stored; inference is not persisted."""
        stored = await self.store.get_profile(uid)
        if stored is None:
            return None
        profile = Profile.model_validate(stored)
        if not profile.domain:
            profile.domain = infer_domains(profile)
            logger.debug(f"Inferred domains for {uid}: {profile.domain}")
        return profile

    async def get(self, uid: str) -> Profile:
        profile = await self.load(uid)
        if profile is None:
            raise ProfileNotFound(uid)
        return profile

    async def update(self, uid: str, patch: Dict[str, Any]) -> Profile:
        updated = await self.store.update_profile(uid, patch)
        if updated is None:
            raise ProfileNotFound(uid)
        logger.info(f"Updated profile {uid} fields: {sorted(patch.keys())}")
        return Profile.model_validate(updated)

    async def push(self, uid: str) -> SyncOutcome:
        """Push the stored profile upstream; a primary push failure is raised."""
        profile = await self.get(uid)
        return await self.sync_client.push(profile)

    async def push_quietly(self, profile: Profile) -> SyncOutcome:
        try:
            return await self.sync_client.push(profile)
        except MatchPatrolError as e:
            logger.error(f"Failed to seed profile {profile.displayId} to external API: {e.message}")
            return SyncOutcome(pushed=False, error=e.message)

    async def refresh_domains(self, uid: str) -> Profile:
        """Replace stored domains with the upstream's, when it is live and has some."""
        profile = await self.get(uid)
        detail = await match_gateway.user_detail(profile.displayId)
        domains = detail["message"].get("domains") or []
        if detail.get("source") != match_gateway.SOURCE_LIVE or not domains:
            logger.info(f"No authoritative domains for {uid} (source={detail.get('source')})")
            return profile
        return await self.update(uid, {"domain": [str(d) for d in domains]})
