"""
MongoDB-backed storage for profiles and the username (display id) index
"""
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure

from match_patrol.utils.exceptions import ExceptionContext, ProfileNotFound
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

WRITE_CONFLICT = 112
PROTECTED_FIELDS = ("_id", "displayId")


class StoreConflict(Exception):
    """A uniqueness claim lost against an existing key"""
    passthrough = True


class UsernameTaken(StoreConflict):
    def __init__(self, display_id: str):
        self.display_id = display_id
        super().__init__(f"Username '{display_id}' is already claimed")


class ProfileExists(StoreConflict):
    def __init__(self, uid: str):
        self.uid = uid
        super().__init__(f"Profile for '{uid}' already exists")


def _is_write_conflict(exc: OperationFailure) -> bool:
    return exc.code == WRITE_CONFLICT or exc.has_error_label("TransientTransactionError")


def flatten_patch(patch: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turn a nested partial profile into dotted ``$set`` paths.

    Nested objects merge into what is stored, so an empty one changes nothing;
    lists and scalars replace.
    ``_id`` and ``displayId`` are never patched.
    """
    flat: Dict[str, Any] = {}
    for key, value in patch.items():
        if not prefix and key in PROTECTED_FIELDS:
            continue
        path = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten_patch(value, prefix=f"{path}."))
        else:
            flat[path] = value
    return flat


def _strip_id(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    doc.pop("_id", None)
    return doc


class MongoProfileStore:
    """Profiles keyed by uid plus a reverse ``displayId -> uid`` index.

    Both collections use ``_id`` as the key, so an insert is an atomic
    claim-if-absent. Writes touching both collections run in one transaction,
    which needs MongoDB deployed as a replica set.
    """

    def __init__(self, client, profiles, usernames):
        self.client = client
        self.profiles = profiles
        self.usernames = usernames

    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        with ExceptionContext("get_profile", logger, collection="profiles", uid=uid):
            doc = await self.profiles.find_one({"_id": uid})
        return _strip_id(doc)

    async def username_owner(self, display_id: str) -> Optional[str]:
        with ExceptionContext("username_owner", logger, collection="usernames", display_id=display_id):
            doc = await self.usernames.find_one({"_id": display_id})
        return doc.get("uid") if doc else None

    async def create_profile(self, uid: str, profile: Dict[str, Any]) -> None:
        """Insert the profile and claim its displayId in one transaction."""
        display_id = profile["displayId"]
        with ExceptionContext("create_profile", logger, collection="profiles", uid=uid):
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    await self._claim(display_id, uid, session)
                    try:
                        await self.profiles.insert_one({**profile, "_id": uid}, session=session)
                    except DuplicateKeyError as e:
                        raise ProfileExists(uid) from e
                    except OperationFailure as e:
                        if _is_write_conflict(e):
                            raise ProfileExists(uid) from e
                        raise
        logger.info(f"Created profile for {uid} with displayId {display_id}")

    async def set_display_id(self, uid: str, display_id: str, overwrite: bool = False) -> None:
        """Attach a displayId to an existing profile and index it.

        With ``overwrite`` the index entry is replaced whoever owned it;
        otherwise a name owned by another uid raises ``UsernameTaken``.
        """
        with ExceptionContext("set_display_id", logger, collection="usernames", uid=uid):
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    if overwrite:
                        await self.usernames.replace_one(
                            {"_id": display_id},
                            {"_id": display_id, "uid": uid},
                            upsert=True,
                            session=session,
                        )
                    else:
                        existing = await self.usernames.find_one({"_id": display_id}, session=session)
                        if existing is None:
                            await self._claim(display_id, uid, session)
                        elif existing.get("uid") != uid:
                            raise UsernameTaken(display_id)
                    result = await self.profiles.update_one(
                        {"_id": uid},
                        {"$set": {"displayId": display_id}},
                        session=session,
                    )
                    if result.matched_count == 0:
                        raise ProfileNotFound(uid)
        logger.info(f"Assigned displayId {display_id} to existing profile {uid} (overwrite={overwrite})")

    async def update_profile(self, uid: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = flatten_patch(patch)
        if not updates:
            return await self.get_profile(uid)
        with ExceptionContext("update_profile", logger, collection="profiles", uid=uid):
            doc = await self.profiles.find_one_and_update(
                {"_id": uid},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        return _strip_id(doc)

    async def _claim(self, display_id: str, uid: str, session) -> None:
        try:
            await self.usernames.insert_one({"_id": display_id, "uid": uid}, session=session)
        except DuplicateKeyError as e:
            raise UsernameTaken(display_id) from e
        except OperationFailure as e:
            if _is_write_conflict(e):
                raise UsernameTaken(display_id) from e
            raise


def get_profile_store() -> MongoProfileStore:
    from match_patrol.services.db import client, profiles_coll, usernames_coll
    return MongoProfileStore(client, profiles_coll, usernames_coll)
