"""
Display id allocation for authenticated users
"""
import random
import re
from typing import Optional

from match_patrol.models.profile import Profile, UserIdentity, empty_profile
from match_patrol.services.profile_store import UsernameTaken
from match_patrol.utils.config import (
    MAX_ALLOCATION_ATTEMPTS,
    REPAIR_POLICY_OVERWRITE,
    USERNAME_REPAIR_POLICY,
)
from match_patrol.utils.exceptions import AllocationExhausted, ValidationError
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
EMPTY_BASE_NAME = "user"


def derive_base_name(email: str) -> str:
    """Local part of the email with every non-alphanumeric character removed."""
    if not email or "@" not in email:
        raise ValidationError("A valid email is required to allocate a display id", field="email", value=email)
    base = NON_ALNUM.sub("", email.split("@")[0])
    return base or EMPTY_BASE_NAME


class IdentityAllocator:
    """Allocates globally unique display ids against the username index.

    The first candidate is the bare base name; each collision swaps in the base
    name plus a random four digit suffix. The claim itself is the store's atomic
    insert, so two service instances racing for one name cannot both win.
    """

    def __init__(self, store, max_attempts: int = MAX_ALLOCATION_ATTEMPTS,
                 repair_policy: str = USERNAME_REPAIR_POLICY, rng: Optional[random.Random] = None):
        self.store = store
        self.max_attempts = max_attempts
        self.repair_policy = repair_policy
        self.rng = rng or random.Random()

    def _suffixed(self, base_name: str) -> str:
        return f"{base_name}{self.rng.randint(1000, 9999)}"

    async def allocate(self, identity: UserIdentity, skeleton: Optional[Profile] = None) -> str:
        """Claim a display id and write ``skeleton`` under it in one store write."""
        skeleton = skeleton or empty_profile(identity.email)
        base_name = derive_base_name(identity.email)
        candidate = base_name

        for attempt in range(1, self.max_attempts + 1):
            if await self.store.username_owner(candidate) is None:
                profile = skeleton.model_copy(update={"displayId": candidate})
                try:
                    await self.store.create_profile(identity.uid, profile.model_dump())
                    logger.info(f"Allocated displayId {candidate} for {identity.uid} on attempt {attempt}")
                    return candidate
                except UsernameTaken:
                    logger.debug(f"Lost race for {candidate} on attempt {attempt}")
            else:
                logger.debug(f"displayId {candidate} already claimed (attempt {attempt})")
            candidate = self._suffixed(base_name)

        logger.error(f"displayId allocation exhausted for {identity.uid} after {self.max_attempts} attempts")
        raise AllocationExhausted(base_name, self.max_attempts)

    async def repair(self, identity: UserIdentity) -> str:
        """Give a legacy profile without a displayId its base name.

        Under the ``overwrite`` policy the username entry is taken over
        unconditionally, even if another uid held it. Under ``claim`` the base
        name is only used when free or already ours; otherwise the collision
        loop runs as for a new user.
        """
        base_name = derive_base_name(identity.email)

        if self.repair_policy == REPAIR_POLICY_OVERWRITE:
            owner = await self.store.username_owner(base_name)
            if owner not in (None, identity.uid):
                logger.warning(f"Repair overwrites username {base_name} held by {owner} for {identity.uid}")
            await self.store.set_display_id(identity.uid, base_name, overwrite=True)
            return base_name

        candidate = base_name
        for attempt in range(1, self.max_attempts + 1):
            if await self.store.username_owner(candidate) in (None, identity.uid):
                try:
                    await self.store.set_display_id(identity.uid, candidate)
                    logger.info(f"Repaired profile {identity.uid} with displayId {candidate}")
                    return candidate
                except UsernameTaken:
                    logger.debug(f"Lost race for {candidate} during repair (attempt {attempt})")
            candidate = self._suffixed(base_name)

        raise AllocationExhausted(base_name, self.max_attempts)
